from .base import UseCase, UseCaseRequest, UseCaseResponse
from .generate_previews import (
    GeneratePreviewsRequest,
    GeneratePreviewsResponse,
    GeneratePreviewsUseCase,
    PreviewOutcome,
)
from .scan_library import ScanLibraryRequest, ScanLibraryResponse, ScanLibraryUseCase
