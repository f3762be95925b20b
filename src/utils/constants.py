"""
Constantes globales pour CineScan.

Ce module contient les constantes utilisees par le moteur de scan:
- Extensions video, audio, sous-titres et images par defaut
- Dossiers systeme et fichiers marqueurs a ignorer
- Motifs des structures de disques (BDMV, VIDEO_TS, HVDVD_TS)
- Mots parasites pour le nettoyage des titres
"""

import re

# Extensions video reconnues par defaut (surchargeables via la configuration)
DEFAULT_VIDEO_EXTENSIONS = (
    ".3gp", ".asf", ".asx", ".avc", ".avi", ".bdmv", ".bin", ".bivx", ".braw",
    ".dat", ".divx", ".dv", ".dvr-ms", ".disc", ".evo", ".fli", ".flv", ".h264",
    ".ifo", ".img", ".iso", ".mts", ".mt2s", ".m2ts", ".m2v", ".m4v", ".mkv",
    ".mk3d", ".mov", ".mp4", ".mpeg", ".mpg", ".nrg", ".nsv", ".nuv", ".ogm",
    ".pva", ".qt", ".rm", ".rmvb", ".strm", ".svq3", ".ts", ".ty", ".viv",
    ".vob", ".vp3", ".wmv", ".webm", ".xvid",
)

DEFAULT_AUDIO_EXTENSIONS = (
    ".a52", ".aa3", ".aac", ".ac3", ".adt", ".adts", ".aif", ".aiff", ".alac",
    ".ape", ".at3", ".atrac", ".au", ".dts", ".flac", ".m4a", ".m4b", ".m4p",
    ".mid", ".midi", ".mka", ".mp3", ".mpa", ".mlp", ".oga", ".ogg", ".pcm",
    ".ra", ".ram", ".rm", ".tta", ".thd", ".wav", ".wave", ".wma",
)

DEFAULT_SUBTITLE_EXTENSIONS = (
    ".aqt", ".cvd", ".dks", ".jss", ".sub", ".sup", ".ttxt", ".mpl", ".pjs",
    ".psb", ".rt", ".srt", ".smi", ".ssf", ".ssa", ".svcd", ".usf", ".ass",
    ".pgs", ".vobsub",
)

ARTWORK_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "tbn", "gif", "bmp"})

# Dossiers systeme ignores (compares en majuscules)
SKIP_FOLDERS = frozenset({
    ".",
    "..",
    "CERTIFICATE",
    "$RECYCLE.BIN",
    "RECYCLER",
    "SYSTEM VOLUME INFORMATION",
    "@EADIR",
    "ADV_OBJ",
    "PLEX VERSIONS",
})

# Les series ignorent aussi les dossiers de bonus au niveau racine
TVSHOW_SKIP_FOLDERS = SKIP_FOLDERS | frozenset({"EXTRAS", "EXTRA", "EXTRATHUMB"})

# Dossiers caches : ".xxx" ou "@xxx", sauf titres legitimes (.45, .Buelos)
MOVIE_SKIP_REGEX = re.compile(r"(?i)^[.@](?!45|buelos)[\w@]+.*")
TVSHOW_SKIP_REGEX = re.compile(r"^[.][\w@]+.*")

# Fichiers marqueurs : leur presence exclut tout le dossier
SKIP_FILES = frozenset({".tmmignore", "tmmignore", ".nomedia"})

# Structures de disques optiques
DISC_FOLDER_REGEX = re.compile(r"(?i)(VIDEO_TS|BDMV|HVDVD_TS)$")
DISC_FOLDER_NAMES = ("BDMV", "VIDEO_TS", "HVDVD_TS")

DVD_FILE_REGEX = re.compile(r"(?i)(video_ts|vts_\d\d_\d)\.(vob|bup|ifo)")
BLURAY_FILE_REGEX = re.compile(
    r"(?i)(index\.bdmv|movieobject\.bdmv|\d{5}\.m2ts|\d{5}\.clpi|\d{5}\.mpls)"
)

# Fichiers identifiant un disque (un seul par structure)
MAIN_DISC_IDENTIFIERS = frozenset({
    "video_ts.ifo",
    "index.bdmv",
    "movieobject.bdmv",
    "hv000i01.ifo",
})
MAIN_BLURAY_STREAM_REGEX = re.compile(r"\d{5}\.m2ts")

# Dossiers de bonus au format Plex
PLEX_EXTRA_FOLDERS = frozenset({
    "behind the scenes",
    "behindthescenes",
    "deleted scenes",
    "deletedscenes",
    "featurettes",
    "interviews",
    "scenes",
    "shorts",
    "other",
})

# Mots techniques supprimes du titre (tokens exacts, insensibles a la casse)
HARD_STOPWORDS = frozenset({
    "1080", "1080i", "1080p", "2160p", "2160i", "3d", "480i", "480p", "576i",
    "576p", "360p", "10bit", "12bit", "360i", "720", "720i", "720p", "8bit",
    "ac3", "ac3ld", "ac3d", "ac3md", "amzn", "aoe", "atmos", "avc", "bd5",
    "bdrip", "blueray", "bluray", "brrip", "cam",
    "cd1", "cd2", "cd3", "cd4", "cd5", "cd6", "cd7", "cd8", "cd9",
    "dd20", "dd51",
    "disc1", "disc2", "disc3", "disc4", "disc5", "disc6", "disc7", "disc8", "disc9",
    "divx", "divx5", "dl", "dsr", "dsrip", "dts", "dtv", "dubbed", "dvd",
    "dvd1", "dvd2", "dvd3", "dvd4", "dvd5", "dvd6", "dvd7", "dvd8", "dvd9",
    "dvdivx", "dvdrip", "dvdscr", "dvdscreener", "emule", "etm", "fs", "fps",
    "h264", "h265", "hd", "hddvd", "hdr", "hdr10", "hdr10+", "hdrip", "hdtv",
    "hdtvrip", "hevc", "hrhd", "hrhdtv", "ind", "ituneshd", "ld", "md",
    "microhd", "multisubs", "mp3", "netflixhd", "nfo", "nfofix", "ntg", "ntsc",
    "ogg", "ogm", "pal", "pdtv", "pso", "r3", "r5", "remastered", "repack",
    "rerip", "remux", "roor", "rs", "rsvcd", "screener", "sd", "subbed", "subs",
    "svcd", "tc", "telecine", "telesync", "ts", "truehd", "uhd", "uncut",
    "unrated", "vcf", "vhs", "vhsrip", "webdl", "webrip", "workprint", "ws",
    "x264", "x265", "xf", "xvid", "xvidvd",
})

# Mots supprimes seulement apres l'annee
SOFT_STOPWORDS = frozenset({
    "complete", "custom", "dc", "docu", "doku", "extended", "fragment",
    "internal", "limited", "local", "ma", "multi", "pal", "proper", "read",
    "retail", "se", "www", "xxx",
})

# Mots composes supprimes avant le decoupage (expressions regulieres)
CLEANWORDS = (
    r"24\.000",
    r"23\.976",
    r"23\.98",
    r"24\.00",
    r"web\-dl",
    r"web\-rip",
    r"blue\-ray",
    r"blu\-ray",
    r"dvd\-rip",
)

# Delimiteurs de tokens dans les noms de fichiers
DELIMITER = r"[\[\](){} _,.-]"

IMDB_ID_REGEX = re.compile(r"tt\d{6,}")
TMDB_ID_REGEX = re.compile(r"(?i)(tmdbid|tmdb)[ ._-]?(\d+)")
TVDB_ID_REGEX = re.compile(r"(?i)(tvdbid|tvdb)[ ._-]?(\d+)")

# Fichiers de dump BDInfo et de metadonnees Blu-ray
BDINFO_TITLE_REGEX = re.compile(r".*Disc Title:\s+(.*?)[\n\r]")
BDMT_TITLE_REGEX = re.compile(r"di:name>(.*?)<")

THREE_D_REGEX = re.compile(r"(?i)[ ._\(\[-]3D[ ._\)\]-]?")
