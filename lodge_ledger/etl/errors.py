"""Exceptions raised by the CSV import pipeline."""


class RowValidationError(ValueError):
    """A single spreadsheet row cannot become a payment record."""


class ImportPipelineError(Exception):
    """The whole import run is rejected before anything is written."""


class CsvFormatError(ImportPipelineError):
    pass


class MissingColumnsError(ImportPipelineError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required columns: {', '.join(missing)}")


class EmptyImportError(ImportPipelineError):
    pass


class StoreUnavailableError(ImportPipelineError):
    pass
