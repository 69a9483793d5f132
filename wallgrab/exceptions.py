"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class WallgrabError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(WallgrabError):
    """Raised for issues related to configuration loading or validation."""


# Transport


class TransportError(WallgrabError):
    """Raised when a network request fails."""


class ConfigFetchError(TransportError):
    """Raised when the resources configuration plist cannot be fetched."""


class BundleFetchError(TransportError):
    """Raised when the resources bundle cannot be fetched."""


class SizeProbeError(TransportError):
    """Raised when the remote size of an asset cannot be determined."""


class AssetFetchError(TransportError):
    """Raised when an asset fails to download."""


# Schema / parse


class SchemaError(WallgrabError):
    """Raised when the manifest or a localization table is malformed."""


class ConfigParseError(WallgrabError):
    """Raised when the resources configuration plist is malformed."""


# Resolution


class ResolutionError(WallgrabError):
    """Raised when the catalog cannot be fully resolved."""


class MemberNotFoundError(ResolutionError):
    """Raised when a member is not present in the resources bundle."""

    def __init__(self, member: str):
        super().__init__(f"'{member}' not found in resources bundle")
        self.member = member


class LanguageNotFoundError(ResolutionError):
    """Raised when no localization table exists for the requested language."""

    def __init__(self, lang: str):
        super().__init__(f"could not find localization table for language '{lang}'")
        self.lang = lang


class MissingLocalizationError(ResolutionError):
    """Raised when a localization key has no entry in the localization table."""

    def __init__(self, key: str):
        super().__init__(f"no localized string for key '{key}'")
        self.key = key


class UnknownCategoryError(ResolutionError):
    """Raised when an asset references a category missing from the manifest."""

    def __init__(self, category_id: str):
        super().__init__(f"could not find category {category_id}")
        self.category_id = category_id


class UnknownSubcategoryError(ResolutionError):
    """Raised when an asset references a subcategory missing from its category."""

    def __init__(self, subcategory_id: str):
        super().__init__(f"could not find subcategory {subcategory_id}")
        self.subcategory_id = subcategory_id


class AmbiguousSubcategoryError(ResolutionError):
    """
    Raised when a subcategory must be resolved for an asset that does not belong
    to exactly one category.
    """

    def __init__(self, subcategory_id: str, categories: list[str]):
        super().__init__(
            f"cannot resolve subcategory {subcategory_id} for "
            f"{len(categories)} categories ({', '.join(categories) or 'none'})"
        )
        self.subcategory_id = subcategory_id
        self.categories = categories


class DuplicateAssetError(ResolutionError):
    """Raised when two assets resolve to the same composed identifier."""

    def __init__(self, shot_id: str, identifier: str):
        super().__init__(f"{shot_id} is not unique: {identifier!r}")
        self.shot_id = shot_id
        self.identifier = identifier


# Filesystem


class FilesystemError(WallgrabError):
    """Raised when the local filesystem is not in a usable state."""


class ZeroSizeAssetError(FilesystemError):
    """Raised when an asset is planned without a known remote size."""

    def __init__(self, identifier: str):
        super().__init__(f"{identifier} has size 0")
        self.identifier = identifier


class PathConflictError(FilesystemError):
    """Raised when an output path exists but is not a regular file."""

    def __init__(self, path: str):
        super().__init__(f"{path} is a directory")
        self.path = path


class PathTraversalError(FilesystemError):
    """Raised when a computed path would leave the destination directory."""


# Emitter


class DurationProbeError(WallgrabError):
    """Raised when ffprobe fails to determine the duration of a file."""
