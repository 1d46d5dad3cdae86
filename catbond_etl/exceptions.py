"""
Exception types raised inside the cat bond pipeline
"""


class CatBondPipelineError(Exception):
    """Base class for pipeline errors"""


class TableFetchError(CatBondPipelineError):
    """A source page could not be fetched or did not contain the expected table"""


class EmptySourceError(CatBondPipelineError):
    """A fetch returned zero rows, so the build must not replace the snapshot"""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"{source} scraping returned no data")
