"""Signed, self-contained tokens for QR codes and email links."""
import calendar
import logging
from datetime import datetime
from typing import Dict, Optional

import jwt
from flask import current_app

from qr_attendance.utils.errors import ExpiredToken, InvalidToken
from qr_attendance.utils.helpers import utcnow

logger = logging.getLogger(__name__)

ATTENDANCE_PURPOSE = 'attendance'
VERIFY_EMAIL_PURPOSE = 'verify-email'
RESET_PASSWORD_PURPOSE = 'reset-password'


def _timestamp(value: datetime) -> int:
    return calendar.timegm(value.utctimetuple())


class TokenCodec:
    """Mint and verify HMAC-signed tokens.

    The caller's payload travels next to the ``iat``, ``exp`` and ``pur``
    claims; ``verify`` strips those again so that a verified token yields
    exactly the payload it was minted from.
    """

    RESERVED_CLAIMS = ('iat', 'exp', 'pur')

    def __init__(self, secret: str, algorithm: str = 'HS256'):
        if not secret:
            raise ValueError('Token secret must be configured')
        self.secret = secret
        self.algorithm = algorithm

    @classmethod
    def from_app(cls) -> 'TokenCodec':
        config = current_app.config
        return cls(
            config.get('QR_TOKEN_SECRET') or config['JWT_SECRET_KEY'],
            config.get('QR_TOKEN_ALGORITHM', 'HS256')
        )

    def mint(self, payload: Dict, ttl_seconds: int, purpose: str = ATTENDANCE_PURPOSE,
             now: Optional[datetime] = None) -> str:
        """Sign ``payload`` so that it is valid for ``ttl_seconds`` from ``now``."""
        clashing = set(payload) & set(self.RESERVED_CLAIMS)
        if clashing:
            raise ValueError(f"Payload uses reserved claims: {sorted(clashing)}")

        issued_at = _timestamp(now or utcnow())
        claims = dict(payload)
        claims.update({
            'iat': issued_at,
            'exp': issued_at + int(ttl_seconds),
            'pur': purpose
        })
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, purpose: str = ATTENDANCE_PURPOSE,
               now: Optional[datetime] = None) -> Dict:
        """Return the payload of a valid token.

        Raises ``ExpiredToken`` once the ``exp`` claim has passed, judged both
        by the library against the system clock and against ``now`` when one
        is supplied, and ``InvalidToken`` for anything that fails signature or
        structure checks.
        """
        if not token or not isinstance(token, str):
            raise InvalidToken()

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={'require': ['exp', 'iat']}
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredToken()
        except jwt.InvalidTokenError as e:
            logger.info('Rejected token: %s', e)
            raise InvalidToken()

        if claims.get('pur') != purpose:
            raise InvalidToken()

        if now is not None and _timestamp(now) >= claims['exp']:
            raise ExpiredToken()

        return {key: value for key, value in claims.items() if key not in self.RESERVED_CLAIMS}
