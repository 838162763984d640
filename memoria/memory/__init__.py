"""Memory engine: transcript, extraction, retrieval and prompt assembly."""
