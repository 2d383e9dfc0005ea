# Cipher keys
INDEX_KEY = 0xDB  # starting key of the incrementing index cipher
DATA_KEY = 0x33   # constant key of the data blob cipher


# File naming
CAT_EXT = ".cat"
DAT_EXT = ".dat"
PCK_EXT = ".pck"
DECODED_SUFFIX = ".decoded"


# Index layout
LINE_END = 0x0A
FIELD_SEP = 0x20
MAX_U32 = 0xFFFFFFFF


DEFAULT_BLOCK_SIZE = 4096  # extraction read size


# Listing columns
LISTING_PATH_WIDTH = 64
LISTING_SIZE_WIDTH = 12


# pck (gzip) layer
GZIP_MAGIC = b"\x1f\x8b"
GZIP_LEVEL = 9
GZIP_MEM_LEVEL = 9
GZIP_WBITS = 15 + 16  # zlib window bits selecting the gzip container

# Content signatures checked after decompression, in priority order
PCK_SIGNATURES = (
    (b"\xef\xbb\xbf<?xml", ".xml"),
    (b"DDS ", ".dds"),
    (b"<?xml", ".xml"),
    (b"BOB1", ".bob"),
    (b"CUT1", ".bob"),
)
PCK_DEFAULT_EXT = ".txt"
