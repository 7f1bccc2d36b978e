from app_reviews.config.settings import Settings, get_settings


__all__ = ["Settings", "get_settings"]
