from .openai_image_client import OpenAIImageClient, PortraitGenerationError, PortraitRateLimit

__all__ = ["OpenAIImageClient", "PortraitGenerationError", "PortraitRateLimit"]
