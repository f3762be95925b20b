"""
Detection des marqueurs de decoupage (stacking).

Un film peut etre reparti sur plusieurs fichiers (Film.CD1.mkv, Film.CD2.mkv)
ou plusieurs dossiers (Film/CD1, Film/CD2). Ces fonctions retirent ou
extraient le marqueur pour regrouper les parties d'un meme titre.
"""

import re

_MARKER = r"(?:cd|dvd|p(?:ar)?t|dis[ck])"

# Film.CD1.mkv, Film-part2.avi
_STACKING_PATTERN_1 = re.compile(rf"(?i)(.*)[ _.-]+({_MARKER}[1-9][0-9]?)([ _.-].+)$")
# CD1.mkv (marqueur en debut de nom)
_STACKING_PATTERN_1A = re.compile(rf"(?i)({_MARKER}[1-9][0-9]?)([ _.-].+)$")
# Film.CDa.mkv
_STACKING_PATTERN_2 = re.compile(rf"(?i)(.*)[ _.-]+({_MARKER}[a-d])([ _.-].+)$")
# Film-a.mkv
_STACKING_PATTERN_3 = re.compile(r"(?i)(.*?)[_.-]+([a-d])(\.[^.]+)$")
# Film (1 of 2).mkv
_STACKING_PATTERN_4 = re.compile(
    r"(?i)(.*?)[ (_.-]+([1-9][0-9]?[ .]?of[ .]?[1-9][0-9]?)[ )_-]?([ _.-].+)$"
)
_FOLDER_STACKING_PATTERN = re.compile(rf"(?i)(.*?)[ _.-]*({_MARKER}[1-9][0-9]?)$")

# (motif, groupes du nom nettoye, groupe du marqueur)
_FILE_PATTERNS = (
    (_STACKING_PATTERN_1, (1, 3), 2),
    (_STACKING_PATTERN_1A, (2,), 1),
    (_STACKING_PATTERN_2, (1, 3), 2),
    (_STACKING_PATTERN_3, (1, 3), 2),
    (_STACKING_PATTERN_4, (1, 3), 2),
)


def clean_stacking_markers(filename: str) -> str:
    """
    Retire le marqueur de decoupage d'un nom de fichier.

    L'extension est conservee : "Movie.Name.CD1.mkv" -> "Movie.Name.mkv".
    Un nom sans marqueur est retourne tel quel.
    """
    if not filename:
        return filename
    for pattern, clean_groups, _ in _FILE_PATTERNS:
        match = pattern.fullmatch(filename)
        if match:
            cleaned = "".join(match.group(g) for g in clean_groups)
            if cleaned:
                return cleaned
    return filename


def clean_folder_stacking_markers(foldername: str) -> str:
    """Retire le marqueur d'un nom de dossier ("Film CD1" -> "Film")."""
    if not foldername:
        return foldername
    match = _FOLDER_STACKING_PATTERN.fullmatch(foldername)
    if match and match.group(1):
        return match.group(1)
    return foldername


def get_stacking_marker(filename: str) -> str:
    """Retourne le marqueur de decoupage d'un nom de fichier, ou une chaine vide."""
    if not filename:
        return ""
    for pattern, _, marker_group in _FILE_PATTERNS:
        match = pattern.fullmatch(filename)
        if match:
            return match.group(marker_group)
    return ""


def get_folder_stacking_marker(foldername: str) -> str:
    if not foldername:
        return ""
    match = _FOLDER_STACKING_PATTERN.fullmatch(foldername)
    return match.group(2) if match else ""

