from .data_entry import DataEntry
from .user import User


__all__ = ["DataEntry", "User"]
