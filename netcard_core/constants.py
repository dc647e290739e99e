# netcard_core/constants.py

ARCHIVE_VERSION = 1

METADATA_ENTRY = "metadata.json"
CONNECTION_ENTRY = "connection.json"
CERTIFICATE_ENTRY = "credentials/certificate"
PRIVATE_KEY_ENTRY = "credentials/privateKey"
MANIFEST_ENTRY = "manifest.json"
SIGNATURE_ENTRY = "signature.json"

SIGNATURE_ALG = "ed25519"

# compare-and-swap attempts for a single wallet write
DATA_WRITE_ATTEMPTS = 5

DEFAULT_DB_PATH = "db/cards.db"
