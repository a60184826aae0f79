from .audio import AUDIO_EXTENSIONS, AudioStorage
from .images import UPLOAD_EXTENSIONS, ImageStorage, thumb_filename

__all__ = ["AUDIO_EXTENSIONS", "AudioStorage", "UPLOAD_EXTENSIONS", "ImageStorage", "thumb_filename"]
