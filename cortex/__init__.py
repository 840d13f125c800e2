# Cortex knowledge graph: canonical store, sync, and derived board view
#
# Components:
#   schema.py       - Data model (KnowledgeNode, KnowledgeLink, KnowledgeGraph, Session)
#   seed.py         - Default content set and topic network used to seed a fresh graph
#   storage.py      - SQLite-backed actor-scoped key/value persistence
#   actor.py        - Single-writer owner of the canonical graph and session table
#   sync_client.py  - HTTP client for the graph API
#   board.py        - Kanban columns derived from the node list
#   graph_store.py  - Client-side reactive cache with optimistic mutations
#   validation.py   - Opt-in link integrity check and node form rules
#   stats.py        - Graph statistics for the profile view
#   config.py       - YAML + environment configuration
