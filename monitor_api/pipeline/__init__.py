from .ingestion import DirectIngestResult, GatewayIngestResult, IngestionPipeline, ProcessedReading

__all__ = [
    "DirectIngestResult",
    "GatewayIngestResult",
    "IngestionPipeline",
    "ProcessedReading",
]
