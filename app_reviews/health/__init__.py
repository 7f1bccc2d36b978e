from app_reviews.health.router import router


__all__ = ["router"]
