"""
Cache Test Server test suite

Structure:
- unit/: generator, counter, dispatcher, config, logging and probe helpers
- integration/: the FastAPI app driven through TestClient
"""
