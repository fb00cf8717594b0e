"""
NTEE (National Taxonomy of Exempt Entities) Code Mapper.

NTEE is the standard classification system used by the IRS and nonprofit
databases. The first letter of a code is the major category, which is what
sector-specific threshold overrides are keyed on.
"""

from typing import Optional

# Major NTEE categories (first letter)
NTEE_MAJOR_CATEGORIES = {
    "A": "Arts, Culture & Humanities",
    "B": "Education",
    "C": "Environment",
    "D": "Animal-Related",
    "E": "Health Care",
    "F": "Mental Health & Crisis Intervention",
    "G": "Diseases, Disorders & Medical Disciplines",
    "H": "Medical Research",
    "I": "Crime & Legal-Related",
    "J": "Employment",
    "K": "Food, Agriculture & Nutrition",
    "L": "Housing & Shelter",
    "M": "Public Safety, Disaster Preparedness & Relief",
    "N": "Recreation & Sports",
    "O": "Youth Development",
    "P": "Human Services",
    "Q": "International, Foreign Affairs & National Security",
    "R": "Civil Rights, Social Action & Advocacy",
    "S": "Community Improvement & Capacity Building",
    "T": "Philanthropy, Voluntarism & Grantmaking Foundations",
    "U": "Science & Technology",
    "V": "Social Science",
    "W": "Public & Societal Benefit",
    "X": "Religion-Related",
    "Y": "Mutual & Membership Benefit",
    "Z": "Unknown",
}


def get_ntee_major_code(ntee_code: Optional[str]) -> Optional[str]:
    """
    Extract the NTEE major category letter from an NTEE code.

    Args:
        ntee_code: NTEE code (e.g., "K31", "a20")

    Returns:
        Upper-case letter A-Z, or None if the code is empty or does not
        start with an ASCII letter

    Examples:
        >>> get_ntee_major_code("k31")
        'K'
        >>> get_ntee_major_code("")
        None
        >>> get_ntee_major_code("9ZZ")
        None
    """
    if not ntee_code:
        return None

    first = ntee_code.strip()[:1].upper()
    if first and "A" <= first <= "Z":
        return first
    return None
