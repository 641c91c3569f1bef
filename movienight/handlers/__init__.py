from movienight.handlers.router import router

__all__ = ["router"]
