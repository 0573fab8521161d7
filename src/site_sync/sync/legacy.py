"""Legacy single-provider backends.

Configs of type ``github`` and ``sysgit`` still parse, but their backends
were superseded by the universal ``git`` type and support no actions.
"""

from collections.abc import Mapping

from .base import ActionHandler, SyncService
from .models import SyncAction


class GithubSync(SyncService):
    service_type = "github"
    placeholder = True

    def handlers(self) -> Mapping[SyncAction, ActionHandler]:
        return {}


class SysgitSync(SyncService):
    service_type = "sysgit"
    placeholder = True

    def handlers(self) -> Mapping[SyncAction, ActionHandler]:
        return {}
