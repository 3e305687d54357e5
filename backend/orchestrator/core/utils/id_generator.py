import secrets
import string
from typing import Literal

# Types d'IDs générés par le coeur d'orchestration
IDType = Literal['session', 'usage', 'audit', 'message']

# Mapping type -> préfixe
ID_PREFIXES = {
    'session': 'ses',
    'usage': 'use',
    'audit': 'aud',
    'message': 'msg',
}


def generate_id(id_type: IDType, length: int = 12) -> str:
    """
    Génère un ID sécurisé avec préfixe.

    Args:
        id_type: Type d'ID à générer (voir IDType)
        length: Longueur de la partie aléatoire (default: 12)

    Returns:
        ID au format: {prefix}_{random}
        Exemple: aud_Kx9mP2aB7cQd

    Raises:
        ValueError: Si id_type invalide
    """
    if id_type not in ID_PREFIXES:
        raise ValueError(f"Invalid id_type: {id_type}. Must be one of {list(ID_PREFIXES.keys())}")

    prefix = ID_PREFIXES[id_type]
    chars = string.ascii_letters + string.digits
    random_part = ''.join(secrets.choice(chars) for _ in range(length))

    return f"{prefix}_{random_part}"
