"""
Detection saison/episode a partir des chemins de fichiers de series.

La detection applique une cascade de motifs, du plus explicite (S01E02,
"Saison 2") au plus generique (un nombre isole). Le premier motif qui
produit des episodes fait autorite ; les detections les plus hasardeuses
(chiffres romains, dates, nombres seuls) ne sont tentees qu'en dernier.
"""

import re
from datetime import date
from pathlib import PurePath
from typing import Iterable, Optional

from loguru import logger

from src.core.value_objects import UNKNOWN_NUMBER, EpisodeMatch
from src.core.value_objects.media_file import is_disc_path
from src.services.scanning.title_parser import remove_stopwords_from_episode_name
from src.utils.constants import IMDB_ID_REGEX
from src.utils.stacking import clean_folder_stacking_markers, get_stacking_marker

DATE_YMD = re.compile(r"([0-9]{4})[.-]([0-9]{2})[.-]([0-9]{2})", re.IGNORECASE)
DATE_DMY = re.compile(r"([0-9]{2})[.-]([0-9]{2})[.-]([0-9]{4})", re.IGNORECASE)
SEASON_LONG = re.compile(r"(staffel|season|saison|series|temporada)[\s_.-]?(\d{1,4})", re.IGNORECASE)
# Doit commencer par un delimiteur
SEASON_ONLY = re.compile(r"[\s_.-]s[\s_.-]?(\d{1,4})", re.IGNORECASE)
EPISODE_ONLY = re.compile(r"[\s_.-]ep?[\s_.-]?(\d{1,4})", re.IGNORECASE)
EPISODE_PATTERN = re.compile(r"[epx_-]+(\d{1,4})", re.IGNORECASE)
EPISODE_PATTERN_2 = re.compile(r"(?:episode|ep)[\. _-]*(\d{1,4})", re.IGNORECASE)
ROMAN_PATTERN = re.compile(r"(part|pt)[\._\s]+([MDCLXVI]+)", re.IGNORECASE)
SEASON_MULTI_EP = re.compile(r"s(\d{1,4})[ ]?((?:([epx_.-]+\d{1,4})+))", re.IGNORECASE)
SEASON_MULTI_EP_2 = re.compile(r"(\d{1,4})(?=x)((?:([epx]+\d{1,4})+))", re.IGNORECASE)
NUMBERS_2 = re.compile(r"([0-9]{2})", re.IGNORECASE)
NUMBERS_3 = re.compile(r"([0-9])([0-9]{2})", re.IGNORECASE)

_FOLDER_PART = re.compile(r"(.*[\/\\])")
_EXTENSION = re.compile(r"\.\w{1,4}$")
_YEAR_TAG = re.compile(r"[\(\[]\d{4}[\)\]]")
_CRC_TAG = re.compile(r"[\(\[][A-Fa-f0-9]{8}[\)\]]")
_OPTIONALS = re.compile(r"[\[\{](.*?)[\]\}]")
_NUMBER_SPLIT = re.compile(r"[\s|_.-]")
_TITLE_SPLIT = re.compile(r"[\[\]() _,.-]+")
_DISC_NAME = re.compile(
    r"(video_ts|vts_\d\d_\d)\.(vob|bup|ifo)|(index\.bdmv|movieobject\.bdmv|\d{5}\.m2ts)"
)

_POST_CLEAN_PATTERNS = (
    SEASON_LONG,
    SEASON_MULTI_EP,
    SEASON_MULTI_EP_2,
    EPISODE_PATTERN,
    EPISODE_PATTERN_2,
    NUMBERS_3,
    NUMBERS_2,
    ROMAN_PATTERN,
    DATE_YMD,
    DATE_DMY,
    SEASON_ONLY,
)

# Variantes retirees d'un titre d'episode (memes motifs, sans capture finale)
_TITLE_VARIANTS = tuple(
    re.compile(pattern)
    for pattern in (
        r"[Ss]([0-9]+)[\]\[ _.-]*[Ee]([0-9]+)",
        r"[ _.-]()[Ee][Pp]?_?([0-9]+)",
        r"([0-9]{4})[.-]([0-9]{2})[.-]([0-9]{2})",
        r"([0-9]{2})[.-]([0-9]{2})[.-]([0-9]{4})",
        r"[\\/\._ \[\(-]([0-9]+)x([0-9]+)",
        r"[\/ _.-]p(?:ar)?t[ _.-]()([ivx]+)",
        r"[epx_-]+(\d{1,3})",
        r"episode[\. _-]*(\d{1,3})",
        r"(part|pt)[\._\s]+([MDCLXVI]+)",
        r"(staffel|season|saison|series|temporada)[\s_.-]*(\d{1,4})",
        r"s(\d{1,4})[ ]?((?:([epx_.-]+\d{1,3})+))",
        r"(\d{1,4})(?=x)((?:([epx]+\d{1,3})+))",
    )
)

_SEASON_NUMBER = re.compile(r"(?i)season(\d+).*")
_SEASON_FOLDER_NUMBER = re.compile(r"(?i).*?(\d+).*")

_ROMAN_VALUES = {"M": 1000, "D": 500, "C": 100, "L": 50, "X": 10, "V": 5, "I": 1}


def decode_roman(roman: str) -> int:
    """Convertit un nombre romain ("IV" -> 4). Les lettres inconnues valent 0."""
    values = [_ROMAN_VALUES.get(char, 0) for char in roman.upper()]
    if not values:
        return 0
    total = 0
    for current, following in zip(values, values[1:]):
        total += -current if current < following else current
    return total + values[-1]


class SeasonEpisodeResolver:
    """
    Deduit saison et episodes d'un chemin relatif a la racine d'une serie.

    Args:
        badwords: Mots parasites configures, retires avant l'analyse
    """

    def __init__(self, badwords: Iterable[str] = ()) -> None:
        self._badwords = tuple(badwords)

    def detect_from_relative_path(self, relative_path: str, show_title: str = "") -> EpisodeMatch:
        """
        Detection en deux temps : nom de fichier seul, puis chemin complet.

        Si seuls des episodes sont trouves dans le nom de fichier, la saison
        est cherchee dans le chemin complet (dossier "Saison 2").

        Args:
            relative_path: Chemin relatif a la racine de la serie
            show_title: Titre de la serie, retire du nom avant l'analyse

        Returns:
            EpisodeMatch (episodes vides si rien n'a ete trouve)
        """
        filename = PurePath(relative_path.replace("\\", "/")).name
        result = self.detect(filename, show_title)

        if result.episodes and result.season == UNKNOWN_NUMBER:
            result.season = self.detect(relative_path, show_title).season
        elif result.season == UNKNOWN_NUMBER and not result.episodes:
            result = self.detect(relative_path, show_title)

        logger.trace(
            f"Numerotation detectee: {relative_path} "
            f"(saison {result.season}, episodes {result.episodes})"
        )
        return result

    def detect(self, name: str, show_title: str = "") -> EpisodeMatch:
        result = EpisodeMatch()
        filename = PurePath(name.replace("\\", "/")).name

        # Fichier de disque : seul le dossier est significatif
        if _DISC_NAME.fullmatch(filename.lower()):
            name = name[: len(name) - len(filename)]

        basename = remove_stopwords_from_episode_name(name, self._badwords)
        foldername = ""
        folder_match = _FOLDER_PART.match(basename)
        if folder_match:
            foldername = folder_match.group(1)
            basename = basename[folder_match.end():]

        if not basename and not foldername:
            return result

        basename = _EXTENSION.sub("", basename, count=1)
        basename = _YEAR_TAG.sub("", basename, count=1)
        basename = _CRC_TAG.sub("", basename, count=1)

        basename = f" {basename} "
        foldername = f" {foldername} "

        result.stacking_marker_found = bool(get_stacking_marker(filename))
        result.name = basename.strip()

        self._parse_season_long(result, basename + foldername)
        if result.season != UNKNOWN_NUMBER:
            basename = SEASON_LONG.sub("", basename)
            foldername = SEASON_LONG.sub("", foldername)
        self._parse_season_multi_ep(result, basename + foldername)
        self._parse_season_multi_ep_2(result, basename + foldername)
        self._parse_episode_pattern(result, basename)
        if result.episodes:
            return self._post_clean(result)

        # Le titre de la serie peut contenir des nombres ("24", "1923")
        if show_title:
            quoted = re.escape(show_title)
            basename = re.sub(rf"(?i)[^ES]{quoted}", "", basename)
            foldername = re.sub(rf"(?i)[^ES]{quoted}", "", foldername)
            loose = re.sub(r"(\\[ _.\-])+", "[ _.-]", quoted)
            foldername = re.sub(f"(?i){loose}", "", foldername)

        # Detections hasardeuses : seulement sans resultat jusqu'ici
        self._parse_roman(result, basename)
        if result.episodes:
            return self._post_clean(result)
        if self._parse_date(result, basename):
            return self._post_clean(result)

        if is_disc_path(PurePath(filename)):
            return self._post_clean(result)

        if result.season == UNKNOWN_NUMBER:
            self._parse_season_only(result, foldername)
            if result.season != UNKNOWN_NUMBER:
                foldername = SEASON_ONLY.sub("", foldername)
        if not result.episodes:
            self._parse_episode_only(result, basename)
        if result.episodes:
            return self._post_clean(result)

        numbers = self._numbers_only(basename)
        for parse in (self._parse_numbers_4, self._parse_numbers_3, self._parse_numbers_2):
            parse(result, numbers)
            if result.episodes:
                return self._post_clean(result)
        self._parse_numbers_1(result, numbers)
        return self._post_clean(result)

    # Motifs explicites

    @staticmethod
    def _parse_season_long(result: EpisodeMatch, name: str) -> None:
        if result.season != UNKNOWN_NUMBER:
            return
        match = SEASON_LONG.search(name)
        if match:
            result.season = int(match.group(2))

    @staticmethod
    def _parse_season_multi_ep(result: EpisodeMatch, name: str) -> None:
        # S01E01E02 : les episodes doivent se suivre
        last_found = 0
        for match in SEASON_MULTI_EP.finditer(name):
            season = int(match.group(1))
            for episode_match in EPISODE_PATTERN.finditer(match.group(2)):
                episode = int(episode_match.group(1))
                if episode not in result.episodes and (last_found == 0 or last_found + 1 == episode):
                    last_found = episode
                    result.episodes.append(episode)
            result.season = season

    @staticmethod
    def _parse_season_multi_ep_2(result: EpisodeMatch, name: str) -> None:
        # 1x02, 1x02x03
        for match in SEASON_MULTI_EP_2.finditer(name):
            season = -1
            if match.group(2) is not None and result.season == UNKNOWN_NUMBER:
                season = int(match.group(1))
            for episode_match in EPISODE_PATTERN.finditer(match.group(2)):
                episode = int(episode_match.group(1))
                if episode > 0:
                    result.add_episode(episode)
            if season >= 0:
                result.season = season

    @staticmethod
    def _parse_episode_pattern(result: EpisodeMatch, name: str) -> None:
        if result.episodes:
            return
        for match in EPISODE_PATTERN_2.finditer(name):
            episode = int(match.group(1))
            if episode > 0:
                result.add_episode(episode)

    # Motifs hasardeux

    @staticmethod
    def _parse_roman(result: EpisodeMatch, name: str) -> None:
        if result.episodes:
            return
        for match in ROMAN_PATTERN.finditer(name):
            episode = decode_roman(match.group(2))
            if episode > 0:
                result.add_episode(episode)

    @staticmethod
    def _parse_date(result: EpisodeMatch, name: str) -> bool:
        """Episode date ("2011.03.12") : la saison est l'annee."""
        if result.season != UNKNOWN_NUMBER:
            return False
        match = DATE_YMD.search(name)
        if match:
            year, month, day = (int(g) for g in match.groups())
        else:
            match = DATE_DMY.search(name)
            if not match:
                return False
            day, month, year = (int(g) for g in match.groups())

        result.season = year
        try:
            result.date = date(year, month, day)
        except ValueError:
            result.date = None
        return True

    @staticmethod
    def _parse_season_only(result: EpisodeMatch, name: str) -> None:
        if result.season != UNKNOWN_NUMBER:
            return
        match = SEASON_ONLY.search(name)
        if match:
            result.season = int(match.group(1))

    @staticmethod
    def _parse_episode_only(result: EpisodeMatch, name: str) -> None:
        match = EPISODE_ONLY.search(name)
        if match:
            result.episodes.append(int(match.group(1)))

    @staticmethod
    def _numbers_only(basename: str) -> list[str]:
        """Tokens purement numeriques, du dernier au premier."""
        without_optionals = _OPTIONALS.sub("", basename)
        numbers = [t for t in _NUMBER_SPLIT.split(without_optionals) if t.isdigit()]
        if not numbers:
            for match in _OPTIONALS.finditer(basename):
                numbers.extend(
                    t for t in _NUMBER_SPLIT.split(f" {match.group(1)} ") if t.isdigit()
                )
        # Le dernier nombre est le plus significatif
        numbers.reverse()
        return numbers

    @staticmethod
    def _parse_numbers_4(result: EpisodeMatch, numbers: list[str]) -> None:
        # SSEE : uniquement si la saison est deja connue (sinon toute annee serait valide)
        for number in numbers:
            if len(number) != 4:
                continue
            season, episode = int(number[:2]), int(number[2:])
            if result.season == season and episode > 0:
                result.add_episode(episode)

    @staticmethod
    def _parse_numbers_3(result: EpisodeMatch, numbers: list[str]) -> None:
        # SEE
        for number in numbers:
            if len(number) != 3:
                continue
            season, episode = int(number[:1]), int(number[1:])
            if result.season in (UNKNOWN_NUMBER, season):
                if episode > 0:
                    result.add_episode(episode)
                result.season = season

    @staticmethod
    def _parse_numbers_2(result: EpisodeMatch, numbers: list[str]) -> None:
        for number in numbers:
            if len(number) == 2:
                episode = int(number)
                if episode > 0:
                    result.add_episode(episode)
                return

    @staticmethod
    def _parse_numbers_1(result: EpisodeMatch, numbers: list[str]) -> None:
        for number in numbers:
            if len(number) == 1:
                episode = int(number)
                if episode > 0:
                    result.add_episode(episode)
                return

    @staticmethod
    def _post_clean(result: EpisodeMatch) -> EpisodeMatch:
        cleaned = result.name
        for pattern in _POST_CLEAN_PATTERNS:
            cleaned = pattern.sub("", cleaned, count=1)
        cleaned = re.sub(r"^[ .\-_]+", "", cleaned)
        cleaned = re.sub(r"[ .\-_]+$", "", cleaned)
        result.cleaned_name = cleaned
        result.episodes.sort()
        return result

    def clean_episode_title(self, title: str, show_title: str = "") -> str:
        """
        Construit un titre d'episode lisible a partir d'un nom de fichier.

        Retire les caracteres interdits, les mots techniques, le titre de la
        serie, l'extension, l'annee, le CRC et toutes les variantes de
        numerotation ; si plus rien ne reste, le nom decoupe est conserve.
        """
        basename = remove_stopwords_from_episode_name(re.sub(r'[":<>|?*]', "", title), self._badwords)
        basename = clean_folder_stacking_markers(basename)
        basename = _FOLDER_PART.sub("", basename)
        basename = basename + " "

        if show_title:
            basename = re.sub(rf"(?i)^{re.escape(show_title)}", "", basename)
        basename = _EXTENSION.sub("", basename, count=1)
        basename = _YEAR_TAG.sub("", basename, count=1)
        basename = _CRC_TAG.sub("", basename, count=1)
        return _remove_episode_variants(basename)


def _remove_episode_variants(title: str) -> str:
    backup = title
    for pattern in _TITLE_VARIANTS:
        title = pattern.sub("", title)

    words = [w for w in _TITLE_SPLIT.split(title) if w and not IMDB_ID_REGEX.fullmatch(w)]
    cleaned = " ".join(words).strip()
    if cleaned:
        return cleaned
    # Tout a ete retire : on garde le nom d'origine decoupe
    return " ".join(w for w in _TITLE_SPLIT.split(backup) if w).strip()


def detect_season_from_file_and_folder(filename: str, foldername: str) -> Optional[int]:
    """
    Numero de saison d'une illustration de saison.

    "season-specials" ou un dossier "Specials" donnent 0, "season-all" -1 ;
    sinon le numero du nom de fichier, puis celui du dossier.

    Returns:
        Le numero de saison, ou None s'il ne peut etre deduit
    """
    if filename.startswith("season-specials") or foldername.lower() == "specials":
        return 0
    if filename.startswith("season-all"):
        return -1

    match = _SEASON_NUMBER.fullmatch(filename)
    if match:
        return int(match.group(1))
    match = _SEASON_NUMBER.fullmatch(foldername)
    if match:
        return int(match.group(1))
    match = _SEASON_FOLDER_NUMBER.fullmatch(foldername)
    if match:
        return int(match.group(1))
    return None
