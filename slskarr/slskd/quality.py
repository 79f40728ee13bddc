"""Best-effort codec and quality inference from a file's extension and metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from slskarr.slskd.paths import file_extension
from slskarr.slskd.types import ResponseFile


class Codec(Enum):
    UNKNOWN = "Unknown"
    MP1 = "MP1"
    MP2 = "MP2"
    MP3_VBR = "MP3VBR"
    MP3_CBR = "MP3CBR"
    APE = "APE"
    WMA = "WMA"
    WAV = "WAV"
    FLAC = "FLAC"
    OGG = "OGG"
    OPUS = "OPUS"


class Quality(Enum):
    UNKNOWN = "Unknown"
    MP3_008 = "MP3-8"
    MP3_016 = "MP3-16"
    MP3_024 = "MP3-24"
    MP3_032 = "MP3-32"
    MP3_040 = "MP3-40"
    MP3_048 = "MP3-48"
    MP3_056 = "MP3-56"
    MP3_064 = "MP3-64"
    MP3_080 = "MP3-80"
    MP3_096 = "MP3-96"
    MP3_112 = "MP3-112"
    MP3_128 = "MP3-128"
    MP3_160 = "MP3-160"
    MP3_192 = "MP3-192"
    MP3_224 = "MP3-224"
    MP3_256 = "MP3-256"
    MP3_320 = "MP3-320"
    FLAC = "FLAC"
    FLAC_24 = "FLAC 24bit"
    APE = "APE"
    WMA = "WMA"
    WAV = "WAV"
    VORBIS_Q5 = "OGG Vorbis Q5"
    VORBIS_Q6 = "OGG Vorbis Q6"
    VORBIS_Q7 = "OGG Vorbis Q7"
    VORBIS_Q8 = "OGG Vorbis Q8"
    VORBIS_Q9 = "OGG Vorbis Q9"
    VORBIS_Q10 = "OGG Vorbis Q10"


@dataclass(frozen=True)
class FileQuality:
    codec: Codec
    quality: Quality


@dataclass(frozen=True)
class MediaFile:
    file: ResponseFile
    quality: FileQuality


# Exact bitrate matches only; anything else is treated as VBR.
MP3_CBR_TIERS: dict[int, Quality] = {
    8: Quality.MP3_008,
    16: Quality.MP3_016,
    24: Quality.MP3_024,
    32: Quality.MP3_032,
    40: Quality.MP3_040,
    48: Quality.MP3_048,
    56: Quality.MP3_056,
    64: Quality.MP3_064,
    80: Quality.MP3_080,
    96: Quality.MP3_096,
    112: Quality.MP3_112,
    128: Quality.MP3_128,
    160: Quality.MP3_160,
    192: Quality.MP3_192,
    224: Quality.MP3_224,
    256: Quality.MP3_256,
    320: Quality.MP3_320,
}

OGG_TIERS: dict[int, Quality] = {
    160: Quality.VORBIS_Q5,
    192: Quality.VORBIS_Q6,
    224: Quality.VORBIS_Q7,
    256: Quality.VORBIS_Q8,
    320: Quality.VORBIS_Q9,
    500: Quality.VORBIS_Q10,
}

# (exclusive upper bound, quality); bitrates from the last bound upwards are VORBIS_Q10.
OPUS_BANDS: tuple[tuple[int, Quality], ...] = (
    (130, Quality.UNKNOWN),
    (180, Quality.VORBIS_Q5),
    (205, Quality.VORBIS_Q6),
    (240, Quality.VORBIS_Q7),
    (290, Quality.VORBIS_Q8),
    (410, Quality.VORBIS_Q9),
)

FLAC_DEPTHS: dict[int, Quality] = {
    16: Quality.FLAC,
    24: Quality.FLAC_24,
}

_FIXED: dict[str, FileQuality] = {
    "MP1": FileQuality(Codec.MP1, Quality.UNKNOWN),
    "MP2": FileQuality(Codec.MP2, Quality.UNKNOWN),
    "APE": FileQuality(Codec.APE, Quality.APE),
    "WMA": FileQuality(Codec.WMA, Quality.WMA),
    "WAV": FileQuality(Codec.WAV, Quality.WAV),
}

UNKNOWN_QUALITY = FileQuality(Codec.UNKNOWN, Quality.UNKNOWN)


def _opus_quality(bit_rate: int) -> Quality:
    for upper, quality in OPUS_BANDS:
        if bit_rate < upper:
            return quality
    return Quality.VORBIS_Q10


def classify(extension: str, bit_rate: Optional[int] = None, bit_depth: Optional[int] = None) -> FileQuality:
    """Map an extension plus bitrate/bit depth to a codec and quality tier."""
    ext = (extension or "").strip().lstrip(".").upper()

    fixed = _FIXED.get(ext)
    if fixed is not None:
        return fixed

    if ext == "MP3":
        if bit_rate is None:
            return FileQuality(Codec.MP3_VBR, Quality.UNKNOWN)
        tier = MP3_CBR_TIERS.get(bit_rate)
        if tier is None:
            return FileQuality(Codec.MP3_VBR, Quality.UNKNOWN)
        return FileQuality(Codec.MP3_CBR, tier)

    if ext == "FLAC":
        if bit_depth is None:
            return FileQuality(Codec.FLAC, Quality.UNKNOWN)
        return FileQuality(Codec.FLAC, FLAC_DEPTHS.get(bit_depth, Quality.UNKNOWN))

    if ext == "OGG":
        if bit_rate is None:
            return FileQuality(Codec.OGG, Quality.UNKNOWN)
        return FileQuality(Codec.OGG, OGG_TIERS.get(bit_rate, Quality.UNKNOWN))

    if ext == "OPUS":
        if bit_rate is None:
            return FileQuality(Codec.OPUS, Quality.UNKNOWN)
        return FileQuality(Codec.OPUS, _opus_quality(bit_rate))

    return UNKNOWN_QUALITY


def classify_file(file: ResponseFile) -> FileQuality:
    return classify(file_extension(file.filename), file.bit_rate, file.bit_depth)


def has_media_metadata(file: ResponseFile) -> bool:
    """Audio files carry a length and at least one of bitrate or bit depth."""
    return (file.bit_rate is not None or file.bit_depth is not None) and file.length is not None


def select_media_files(files: Iterable[ResponseFile]) -> List[MediaFile]:
    """Keep files with audio metadata and a recognised codec, paired with their quality."""
    selected: List[MediaFile] = []
    for file in files:
        if not has_media_metadata(file):
            continue
        quality = classify_file(file)
        if quality.codec is Codec.UNKNOWN:
            continue
        selected.append(MediaFile(file=file, quality=quality))
    return selected
