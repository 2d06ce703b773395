"""Mock collaborators for the task context pipeline.

- Embedding and chat-completion SDK clients (mock_llm)
- Vector index (mock_vector_index)
- Relational task store (mock_record_store)

These mocks keep every test free of network and model dependencies.
"""
