from zoe.core.errors import DomainError


class ContentNotFoundError(DomainError):
    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")
