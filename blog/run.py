#!/usr/bin/env python3
"""Run the blog application"""
import uvicorn

from blog.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "blog.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
