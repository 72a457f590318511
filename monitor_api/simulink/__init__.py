from .ingestor import SampleIngestor, SampleValidationError

__all__ = ["SampleIngestor", "SampleValidationError"]
