"""Web pages for Student Registry."""

from student_registry.web.app import create_app

__all__ = ["create_app"]
