"""Member authentication bridge exports."""

from .credentials import Credentials, validate_credentials  # noqa: F401
from .errors import (  # noqa: F401
    BridgeError,
    TransportUnavailableError,
    ValidationError,
    ValidationErrorKind,
)
from .fallback import synthesize_fallback_member  # noqa: F401
from .models import (  # noqa: F401
    AuthenticationOutcome,
    CredentialRejected,
    MemberRecord,
    MemberSource,
    MemberTier,
    PartialMemberRecord,
    Success,
    Unavailable,
)
from .sequencer import StrategySequencer  # noqa: F401
from .service import MemberBridgeService, UpstreamProbeResult  # noqa: F401
from .session_attempt import SessionAttempt  # noqa: F401
from .strategies import ConnectionStrategy, TransportKind, build_strategies  # noqa: F401
from .tiers import classify_tier, format_member_record  # noqa: F401
from .transport import SessionTransport, SocketIOTransport  # noqa: F401
