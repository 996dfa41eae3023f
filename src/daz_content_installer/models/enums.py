from enum import StrEnum


class AssetCategory(StrEnum):
    UNKNOWN = "Unknown"
    CHARACTER = "Character"
    ANATOMY = "Anatomy"
    CLOTHING = "Clothing"
    HAIR = "Hair"
    PROPS = "Props"
    ENVIRONMENT = "Environment"
    POSES = "Poses"
    MATERIALS = "Materials"
    LIGHTS = "Lights"
    CAMERAS = "Cameras"
    SCRIPTS = "Scripts"
    TEXTURES = "Textures"
    MORPHS = "Morphs"
    MIXED = "Mixed"


class ArchiveStatus(StrEnum):
    LOADING = "Loading"
    READY = "Ready"
    INSTALLING = "Installing"
    INSTALLED = "Installed"
    ERROR = "Error"
    DUPLICATE = "Duplicate"
