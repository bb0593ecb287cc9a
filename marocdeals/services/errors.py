"""
Typed failures of the verification and account flow.

Every error carries a machine-readable ``reason`` (sent to clients) and the
French user-facing ``message`` shown by the frontend.
"""


class AuthFlowError(Exception):
    reason = "auth_error"
    message = "Erreur d'authentification"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class VerificationError(AuthFlowError):
    reason = "verification_failed"


class CodeNotFound(VerificationError):
    reason = "not_found"
    message = "Code non trouvé ou expiré"


class CodeExpired(VerificationError):
    reason = "expired"
    message = "Code expiré"


class TooManyAttempts(VerificationError):
    reason = "too_many_attempts"
    message = "Trop de tentatives. Demandez un nouveau code"


class CodeMismatch(VerificationError):
    reason = "mismatch"
    message = "Code incorrect"


class DeliveryFailed(AuthFlowError):
    reason = "delivery_failed"
    message = "Erreur lors de l'envoi du code"


class AlreadyExists(AuthFlowError):
    reason = "already_exists"
    message = "Email déjà utilisé"


class NotVerified(AuthFlowError):
    reason = "not_verified"
    message = "Vérification requise avant création du compte"


class InvalidCredentials(AuthFlowError):
    reason = "invalid_credentials"
    message = "Email ou mot de passe invalide"


class AccountNotVerified(AuthFlowError):
    reason = "account_not_verified"
    message = "Compte non vérifié"
