from ninja_extra.throttling import AnonRateThrottle


class RegistrationThrottle(AnonRateThrottle):
    """Per-IP limit on account creation."""
    rate = "10/hour"
    scope = "registration"


class VerificationEmailThrottle(AnonRateThrottle):
    """Per-IP limit on resend requests; the per-user interval in services is the second layer."""
    rate = "5/hour"
    scope = "verification_email"
