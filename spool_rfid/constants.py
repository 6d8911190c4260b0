# spool_rfid/constants.py

"""
Layout and policy constants for filament spool RFID tags.
"""

# --- Memory Geometry (MIFARE Classic) ---
BLOCK_SIZE = 16
BLOCKS_PER_SMALL_SECTOR = 4     # Sectors 0-31
BLOCKS_PER_LARGE_SECTOR = 16    # Sectors 32-39 (4K only)
SMALL_SECTOR_COUNT = 32
SECTOR_SIZE_SMALL = BLOCK_SIZE * BLOCKS_PER_SMALL_SECTOR
SECTOR_SIZE_LARGE = BLOCK_SIZE * BLOCKS_PER_LARGE_SECTOR

MIFARE_1K_SIZE = 1024
MIFARE_1K_SECTORS = 16
MIFARE_4K_SIZE = 4096
MIFARE_4K_SECTORS = 40

# Sector trailer layout: KeyA(6) AccessBits(4) KeyB(6)
TRAILER_KEY_A_OFFSET = 0
TRAILER_KEY_B_OFFSET = 10
KEY_LENGTH = 6

MIN_UID_LENGTH = 4
MAX_UID_LENGTH = 10

# --- Radio Technology Labels ---
TECH_MIFARE_CLASSIC = "MifareClassic"
TECH_NTAG = "NTAG"

# --- Key Derivation (HKDF-SHA256, RFC 5869) ---
KDF_MASTER_KEY = bytes.fromhex("9a759cf2c4f7caff222cb9769b41bc96")
KDF_CONTEXT = b"RFID-A\x00"
DERIVED_KEY_COUNT = 16
KEY_CACHE_SIZE = 256

FALLBACK_KEYS = (
    bytes.fromhex("FFFFFFFFFFFF"),  # Factory default
    bytes.fromhex("000000000000"),
    bytes.fromhex("A0A1A2A3A4A5"),  # MAD key
    bytes.fromhex("B0B1B2B3B4B5"),
    bytes.fromhex("AABBCCDDEEFF"),
    bytes.fromhex("4D3A99C351DD"),  # NXP transport configuration
    bytes.fromhex("1A982C7E459A"),
)

UNPROTECTED_KEY_LABEL = "unprotected"

# --- Format Layout Requirements ---
# Number of leading sectors each format needs to be decodable.
MIN_SECTORS_BAMBU = 5       # Blocks 1-17
MIN_SECTORS_CREALITY = 2    # Blocks 4-6
MIN_SECTORS_OPENTAG = 2     # Core fields 0x10-0x58

MIN_AUTHENTICATED_SECTORS = min(MIN_SECTORS_BAMBU, MIN_SECTORS_CREALITY, MIN_SECTORS_OPENTAG)

# --- Compound Identity ---
IDENTITY_LENGTH = 16
IDENTITY_PAIR_SEPARATOR = "|"
IDENTITY_NAME_SEPARATOR = ":"
IDENTITY_ESCAPE = "\\"
