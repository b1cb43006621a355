from magicsell.models.record import CollectionRecord, Counter

__all__ = [
    "CollectionRecord",
    "Counter",
]
