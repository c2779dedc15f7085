from .api_client import DirectoryApiClient
from .filesystem_directory import FileSystemDirectory

__all__ = ["DirectoryApiClient", "FileSystemDirectory"]
