"""Blueprint catalog transport shared by the CLI and the sync coordinator."""

from .client import BlueprintApi, BlueprintClient

__all__ = ["BlueprintApi", "BlueprintClient"]
