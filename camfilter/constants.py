"""Constants"""

# pylint: disable=too-few-public-methods
class C:
    """Constants"""
    FRAME_WIDTH  = 160
    FRAME_HEIGHT = 120
    BLOCK_SIZE   = 5
    BLUR_RADIUS  = 10
    DEFAULT_BRIGHTNESS = 1.2
    DEFAULT_THRESHOLD  = 128

    # RGB to YCbCr coefficients
    Y_R  = 0.299
    Y_G  = 0.587
    Y_B  = 0.114
    CB_R = -0.168736
    CB_G = -0.331264
    CB_B = 0.5
    CR_R = 0.5
    CR_G = -0.418688
    CR_B = -0.081312
    CHROMA_OFFSET = 128

    # RGBA, not BGR; frames are stored in canvas order
    BLACK = (0,0,0,255)
    WHITE = (255,255,255,255)
    GREEN = (0,255,0,255)
    BOX_THICKNESS = 2

    CHANNELS = ('red','green','blue')
