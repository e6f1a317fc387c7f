class KubeWasteError(Exception):
    """
    Base class for the errors that abort a run.
    """

    pass


class SourceUnavailable(KubeWasteError):
    """
    An exception raised when the pods or the pod metrics cannot be listed
    (connection, authorization or kubeconfig problems).
    """

    pass


class ParseError(KubeWasteError):
    """
    An exception raised when a resource quantity cannot be interpreted.
    """

    # NOTE: Not a ValueError, so pydantic validators let it through instead of wrapping it into a ValidationError
    pass
