from .codec import LabelCodec, EncodeError
from .loader import CodecLoader

__all__ = ["LabelCodec",
           "EncodeError",
           "CodecLoader"]
