"""Error types raised by the view pipeline."""


class ViewError(Exception):
    """Base class for view construction failures."""


class ViewPreconditionError(ViewError):
    """A caller handed the pipeline something it cannot work with.

    Raised for items that are not lists/objects, computations that are not
    callable, identity strings that are not identities, and option bags
    that fail validation.
    """


class ViewRegistrationError(ViewError):
    """Registration into a frozen registry or under an empty name."""
