"""Well-known model, size, quality and style tokens."""

OPENAI_DALL_E_3 = "dall-e-3"
OPENAI_DALL_E_2 = "dall-e-2"
OPENAI_GPT_IMAGE_1 = "gpt-image-1"
OPENAI_DEFAULT = OPENAI_DALL_E_3

GOOGLE_IMAGEN_3 = "imagen-3.0-generate-001"
GOOGLE_IMAGEN_3_FAST = "imagen-3.0-fast-generate-001"
GOOGLE_IMAGEN_2 = "imagegeneration@006"
GOOGLE_DEFAULT = GOOGLE_IMAGEN_3

SIZE_256 = "256x256"
SIZE_512 = "512x512"
SIZE_1024 = "1024x1024"
SIZE_WIDE = "1792x1024"
SIZE_TALL = "1024x1792"
OPENAI_SIZES = (SIZE_1024, SIZE_WIDE, SIZE_TALL, SIZE_512, SIZE_256)

QUALITY_STANDARD = "standard"
QUALITY_HD = "hd"
QUALITIES = (QUALITY_STANDARD, QUALITY_HD)

STYLE_VIVID = "vivid"
STYLE_NATURAL = "natural"
STYLES = (STYLE_VIVID, STYLE_NATURAL)

MAX_IMAGES_PER_REQUEST = 10
