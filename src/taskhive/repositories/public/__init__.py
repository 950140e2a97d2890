from src.taskhive.repositories.public.project import ProjectRepository

__all__ = ["ProjectRepository"]
