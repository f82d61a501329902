"""Object factories installed through entry points in the tests."""

from stepglue.framework.objects import DefaultObjectFactory


class CustomObjectFactory(DefaultObjectFactory):
    pass


class NotAFactory:
    pass


class MisconfiguredFactory(DefaultObjectFactory):
    def __init__(self):
        raise RuntimeError("container not configured")
