"""
Static catalogs the gateway validates against.
"""

VALID_ROVERS = ("curiosity", "opportunity", "spirit", "perseverance")

ROVER_CAMERAS = {
    "curiosity": ["FHAZ", "RHAZ", "MAST", "CHEMCAM", "MAHLI", "MARDI", "NAVCAM"],
    "opportunity": ["FHAZ", "RHAZ", "NAVCAM", "PANCAM", "MINITES"],
    "spirit": ["FHAZ", "RHAZ", "NAVCAM", "PANCAM", "MINITES"],
    "perseverance": [
        "EDL_RUCAM", "EDL_RDCAM", "EDL_DDCAM", "EDL_PUCAM1", "EDL_PUCAM2",
        "NAVCAM_LEFT", "NAVCAM_RIGHT", "MCZ_LEFT", "MCZ_RIGHT",
        "FRONT_HAZCAM_LEFT_A", "FRONT_HAZCAM_RIGHT_A", "REAR_HAZCAM_LEFT", "REAR_HAZCAM_RIGHT",
        "SKYCAM", "SHERLOC_WATSON",
    ],
}

EPIC_IMAGE_TYPES = ("natural", "enhanced")

# Inclusive day windows
NEO_FEED_MAX_DAYS = 7
APOD_RANGE_MAX_DAYS = 100

APOD_MAX_COUNT = 100
