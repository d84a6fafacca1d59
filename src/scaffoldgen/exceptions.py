"""Error types raised by the scaffold decomposition package."""


class ScaffoldError(Exception):
    """Base class for all errors raised by scaffoldgen."""


class AdapterError(ScaffoldError):
    """RDKit could not parse, sanitize or canonicalize a structure."""


class EmptyScaffoldError(AdapterError):
    """The input has no ring, so its scaffold is empty."""


class DisconnectedCollectionError(ScaffoldError):
    """A tree lacks a unique root or a node points to a missing parent."""


class UnknownNodeError(ScaffoldError, LookupError):
    """Lookup or removal of a node or key that is not in the collection."""


class EmptyLevelError(ScaffoldError, LookupError):
    """Query for a level beyond the deepest level of the collection."""


class DuplicateNodeError(ScaffoldError, ValueError):
    """A node with the same canonical key is already registered."""


class DuplicateRootError(DuplicateNodeError):
    """A tree already has a root and a second parentless node was added."""
