"""Application constants.

Contains the membership-code alphabet, document labels and the PT-BR
notification texts shown by the presentation layer.
"""

import string

# ---------------------------------------------------------------------------
# Membership code
# ---------------------------------------------------------------------------
UNIQUE_CODE_ALPHABET: str = string.ascii_uppercase + string.digits

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
DEFAULT_FILE_EXTENSION: str = "bin"
DOCUMENT_URL_SCHEME: str = "session"

# ---------------------------------------------------------------------------
# Labels PT-BR para tipos de documento (display no frontend)
# ---------------------------------------------------------------------------
DOCUMENT_TYPE_LABELS_PT: dict[str, str] = {
    "identity_front": "Documento de identidade (frente)",
    "identity_back": "Documento de identidade (verso)",
    "proof_of_enrollment": "Comprovante de matrícula",
    "proof_of_address": "Comprovante de residência",
    "other": "Outro documento",
}

# ---------------------------------------------------------------------------
# Notification texts (PT-BR), keyed by event
# Each entry is (title, description); descriptions may carry format fields.
# ---------------------------------------------------------------------------
MESSAGES_PT: dict[str, tuple[str, str]] = {
    "not_authenticated": (
        "Erro",
        "Você precisa estar logado para continuar.",
    ),
    "record_required": (
        "Erro",
        "Complete o cadastro pessoal primeiro.",
    ),
    "code_required": (
        "Erro",
        "Seu código único ainda não foi gerado. Envie seu cadastro primeiro.",
    ),
    "busy": (
        "Aguarde",
        "Outra operação ainda está em andamento.",
    ),
    "fetch_failed": (
        "Erro ao carregar dados",
        "Não foi possível carregar seus dados. Tente novamente mais tarde.",
    ),
    "invalid_profile": (
        "Dados inválidos",
        "Verifique nome e e-mail antes de enviar.",
    ),
    "invalid_document_type": (
        "Documento inválido",
        "Tipo de documento não reconhecido.",
    ),
    "submit_succeeded": (
        "Cadastro realizado com sucesso!",
        "Seu código único é: {unique_code}",
    ),
    "submit_failed": (
        "Erro ao salvar dados",
        "Não foi possível salvar seus dados. Tente novamente mais tarde.",
    ),
    "document_uploaded": (
        "Documento enviado",
        "{label}: enviado e em análise.",
    ),
    "picture_updated": (
        "Foto atualizada",
        "Sua foto de perfil foi atualizada com sucesso.",
    ),
    "picture_failed": (
        "Erro ao atualizar foto",
        "Não foi possível atualizar sua foto de perfil. Tente novamente mais tarde.",
    ),
}
