"""
NexusHub - Notification Results
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class NotificationResult:
    """Outcome of one outbound email or message; sending never raises"""
    success: bool
    detail: str = ''
    data: Optional[Any] = None

    @classmethod
    def failed(cls, detail: str) -> 'NotificationResult':
        return cls(success=False, detail=detail)

    def to_dict(self) -> Dict:
        return {'success': self.success, 'detail': self.detail}
