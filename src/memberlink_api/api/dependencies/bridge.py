from memberlink_api.core.settings import get_settings
from memberlink_api.services.bridge import MemberBridgeService


def get_member_bridge() -> MemberBridgeService:
    """Each request gets its own service; no session state is shared across requests."""
    return MemberBridgeService(settings=get_settings())
