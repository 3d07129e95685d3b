# Chunking
CHUNK_MAX_SIZE = 6000  # Characters per chunk (~8192 tokens at ~4 chars/token)
CHUNK_OVERLAP = 600  # Overlap between chunks (for context continuity)
CHUNK_BREAK_LOOKBACK = 200  # How far back to look for a natural break

# Search
TOP_K_DEFAULT = 10  # Default number of results
MAX_TOP_K = 50  # Maximum allowed limit on the API
QDRANT_OVERFETCH_FACTOR = 3  # Chunks per document competing for result slots
SNIPPET_LENGTH = 200

# File Watcher
DEBOUNCE_SECONDS = 0.3  # Quiet period before a file change is delivered
WATCH_EXTENSIONS = (".md",)  # File types to monitor
HIDDEN_PREFIX = "."

# Embedding
OLLAMA_ENDPOINT = "http://localhost:11434"
OLLAMA_MODEL = "nomic-embed-text"
OPENAI_EMBEDDING_ENDPOINT = "https://api.openai.com/v1/embeddings"
OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
EMBEDDING_TIMEOUT_SECONDS = 30.0
REACHABILITY_TIMEOUT_SECONDS = 5.0
DIMENSION_PROBE_TEXT = "test"

# Qdrant
QDRANT_URL = "http://localhost:6333"
QDRANT_COLLECTION_NAME = "obsidian_notes"
METADATA_TIMEOUT_SECONDS = 10
SEARCH_TIMEOUT_SECONDS = 30

# Local store
LOCAL_STORE_DIRNAME = ".vault-index"
LOCAL_STORE_FILENAME = "vectors.json"
