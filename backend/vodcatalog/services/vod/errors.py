"""Error taxonomy for catalog reconciliation."""


class CatalogError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class CredentialError(CatalogError):
    """Provider credentials are missing or malformed. Raised before any network call."""


class ProviderError(CatalogError):
    """A feed fetch failed: transport error, timeout, bad status or empty body."""


class StoreError(CatalogError):
    """A catalog transaction or write failed."""
