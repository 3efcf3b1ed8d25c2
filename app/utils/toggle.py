from typing import List


def toggle_id(ids: List[int], user_id: int) -> List[int]:
    """Retire l'utilisateur s'il est déjà présent, l'ajoute sinon."""
    if user_id in ids:
        return [i for i in ids if i != user_id]
    return ids + [user_id]
