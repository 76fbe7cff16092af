from .preview_cache import PreviewCache
from .previewer import Previewer

__all__ = ["PreviewCache", "Previewer"]
