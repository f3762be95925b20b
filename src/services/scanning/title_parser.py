"""
Deduction du titre et de l'annee a partir des noms de fichiers et dossiers.

Heuristique sans dictionnaire : on decoupe le nom sur les delimiteurs usuels,
on supprime les mots techniques (resolution, codec, source...) et on
considere que tout ce qui precede le premier mot technique ou l'annee est
le titre.
"""

import re
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from src.utils.constants import (
    CLEANWORDS,
    DELIMITER,
    HARD_STOPWORDS,
    IMDB_ID_REGEX,
    SOFT_STOPWORDS,
    TMDB_ID_REGEX,
    TVDB_ID_REGEX,
)

# Decoupage : caracteres delimiteurs (y compris l'antislash)
_SPLIT = re.compile(r"[\[\](){} _,.\-\\]+")
_EXTENSION = re.compile(r"\.\w{2,4}$")
_RESOLUTION = re.compile(rf"(?i){DELIMITER}\d{{3,4}}x\d{{3,4}}({DELIMITER}|$)")
_OPTIONALS = re.compile(r"\[(.*?)\]")
_OTR = re.compile(r".*?(_\d{2}\.\d{2}\.\d{2}[_ ]+\d{2}\-\d{2}\_).*")
_YEAR = re.compile(r"\d{4}")
_ROMAN = frozenset({"I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X"})

_IMDB_URL = re.compile(r"imdb\.com\/Title\?(\d{6,})")
_TMDB_URL = re.compile(r"themoviedb\.org\/(?:movie|tv)\/(\d+)")
_TMDB_MOVIE_URL = re.compile(r"themoviedb\.org\/movie\/(\d+)")
_TMDB_TV_URL = re.compile(r"themoviedb\.org\/tv\/(\d+)")
_TVDB_URL = re.compile(r"thetvdb\.com\/(?:movies|series)\/(\d+)")

_CLEANWORD_PATTERNS = tuple(re.compile(rf"(?i){DELIMITER}{word}") for word in CLEANWORDS)
_TV_STOPWORD_PATTERNS = tuple(
    re.compile(rf"(?i){DELIMITER}{re.escape(word)}({DELIMITER}|$)") for word in sorted(HARD_STOPWORDS)
)


def split_tokens(text: str) -> list[str]:
    """Decoupe sur les delimiteurs en ignorant les tokens vides."""
    return [token for token in _SPLIT.split(text) if token]


def _is_year(token: str, current_year: int) -> bool:
    if not _YEAR.fullmatch(token):
        return False
    return 1800 < int(token) < current_year + 5


def _remove_badwords(text: str, badwords: Iterable[str]) -> str:
    for badword in badwords:
        try:
            text = re.sub(f"(?i){badword}", "", text)
        except re.error:
            text = re.sub(re.escape(badword), "", text, flags=re.IGNORECASE)
    return text


def detect_clean_title_and_year(
    filename: str,
    badwords: Iterable[str] = (),
    today: Optional[date] = None,
) -> tuple[str, Optional[int]]:
    """
    Deduit un titre propre et une annee depuis un nom de fichier ou dossier.

    Etapes :
    1. retrait de l'extension, d'une resolution (1920x1080) et des mots
       composes techniques (web-dl, 23.976...)
    2. retrait des mots parasites configures
    3. extraction des [options] entre crochets
    4. decoupage, suppression des mots techniques et identifiants IMDB
    5. annee : dernier token de 4 chiffres plausible (hors premier token)
    6. le titre s'arrete au premier mot technique ou a l'annee

    Args:
        filename: Nom a analyser
        badwords: Expressions a supprimer (insensibles a la casse)
        today: Date de reference pour borner l'annee (tests)

    Returns:
        (titre, annee) ; l'annee vaut None si non detectee
    """
    if not filename:
        return "", None

    badwords = tuple(badwords)
    current_year = (today or date.today()).year

    fname = _EXTENSION.sub("", filename, count=1)
    fname = _RESOLUTION.sub(" ", fname, count=1)
    for pattern in _CLEANWORD_PATTERNS:
        fname = pattern.sub(" ", fname, count=1)

    saved = fname
    fname = _remove_badwords(fname, badwords)
    if not fname.strip():
        # Ne jamais vider completement le nom
        fname = saved

    optionals: list[str] = []
    for match in list(_OPTIONALS.finditer(fname)):
        optionals.extend(split_tokens(match.group(1)))
        fname = fname.replace(match.group(0), "")

    # Enregistrements OTR : "Titre_12.11.17_20-15_..."
    otr = _OTR.fullmatch(fname)
    if otr and otr.start(1) > 10:
        fname = fname[: otr.start(1)]

    tokens = split_tokens(fname) or list(optionals)
    stop_position = len(tokens)

    for i, token in enumerate(tokens):
        if token.lower() in HARD_STOPWORDS:
            tokens[i] = ""
            # Jamais avant le troisieme token : "300 1080p" garde son titre
            if i >= 2:
                stop_position = min(stop_position, i)
        if IMDB_ID_REGEX.fullmatch(tokens[i]):
            tokens[i] = ""

    year: Optional[int] = None
    year_position = -1
    for i in range(len(tokens) - 1, 0, -1):
        if _is_year(tokens[i], current_year):
            year = int(tokens[i])
            tokens[i] = ""
            year_position = i
            break
    if year is None:
        for option in optionals:
            if _is_year(option, current_year):
                year = int(option)

    for i in range(max(year_position, 0), len(tokens)):
        if tokens[i].lower() in SOFT_STOPWORDS:
            tokens[i] = ""
            if i >= 2:
                stop_position = min(stop_position, i)
        if IMDB_ID_REGEX.fullmatch(tokens[i]):
            tokens[i] = ""

    end = stop_position
    if year_position > 0:
        end = min(stop_position, year_position)

    words = []
    for token in tokens[:end]:
        if not token:
            continue
        # "Rocky Iv" -> "Rocky IV"
        words.append(token.upper() if token.upper() in _ROMAN else token)

    title = " ".join(words) if words else fname
    return title.strip(), year


def detect_imdb_id(text: str) -> str:
    """Extrait un identifiant IMDB (tt1234567) d'un texte ou chemin."""
    if not text or not text.strip():
        return ""
    match = IMDB_ID_REGEX.search(text)
    if match:
        return match.group(0)
    match = _IMDB_URL.search(text)
    return f"tt{match.group(1)}" if match else ""


def detect_tmdb_id(text: str) -> int:
    """Extrait un identifiant TMDB ("tmdbid-603" ou URL themoviedb.org)."""
    if not text or not text.strip():
        return 0
    match = TMDB_ID_REGEX.search(text)
    if match:
        return int(match.group(2))
    match = _TMDB_URL.search(text)
    return int(match.group(1)) if match else 0


def detect_tvdb_id(text: str) -> int:
    if not text or not text.strip():
        return 0
    match = TVDB_ID_REGEX.search(text)
    if match:
        return int(match.group(2))
    match = _TVDB_URL.search(text)
    return int(match.group(1)) if match else 0


def detect_tmdb_id_in_nfo(text: str, tv: bool = False) -> int:
    """Recherche un lien themoviedb.org/movie/<id> (ou /tv/) dans un NFO brut."""
    if not text:
        return 0
    pattern = _TMDB_TV_URL if tv else _TMDB_MOVIE_URL
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


def detect_ids_from_path(path: Path) -> tuple[str, int]:
    """Identifiants IMDB et TMDB presents dans un chemin ("Film [tt0133093]")."""
    text = str(path)
    return detect_imdb_id(text), detect_tmdb_id(text)


def remove_stopwords_from_episode_name(filename: str, badwords: Iterable[str] = ()) -> str:
    """
    Retire les mots techniques d'un nom d'episode en conservant l'extension.

    Les nombres parasites (1080, 720, x264...) perturberaient la detection
    saison/episode ; ils ne sont retires que s'ils sont entoures de
    delimiteurs.
    """
    extension = Path(filename).suffix.lstrip(".")
    basename = filename[: -(len(extension) + 1)] if extension else filename

    basename = _RESOLUTION.sub(" ", basename, count=1)
    for pattern in _TV_STOPWORD_PATTERNS:
        basename = pattern.sub(" ", basename)
    for badword in badwords:
        basename = re.sub(
            rf"(?i){DELIMITER}{re.escape(badword)}({DELIMITER}|$)", " ", basename
        )
    return basename + (f".{extension}" if extension else "")
