"""
Pytest configuration and shared fixtures
"""

import pytest

from chordsheet import NotationFormat
from chordsheet.handlers import ChordProParser


CHORDPRO_SAMPLE = """\
{title: Amazing Grace}
{artist: John Newton}
{key: G}

{start_of_verse: Verse 1}
[G]Amazing [C]grace, how [G]sweet the sound
That [G]saved a [D]wretch like [G]me
{end_of_verse}

{start_of_chorus}
[C]Praise the [G]Lord
{comment: Repeat 2x}
{end_of_chorus}"""

ONSONG_SAMPLE = """\
Amazing Grace
John Newton
Key: G

Verse 1:
[G]Amazing [C]grace, how [G]sweet the sound
That [G]saved a [D]wretch like [G]me

Chorus:
[C]Praise the [G]Lord
*Repeat 2x"""

SONGBOOK_SAMPLE = """\
Amazing Grace
by John Newton
Key: G

Verse 1
G       C          G
Amazing grace, how sweet the sound
     G       D           G
That saved a wretch like me


Chorus
C          G
Praise the Lord
(Repeat 2x)"""

NASHVILLE_SAMPLE = """\
Title: Amazing Grace
Artist: John Newton
Key: G

Verse 1:
1       4          1
Amazing grace, how sweet the sound
     1       5           1
That saved a wretch like me

Chorus:
4          1
Praise the Lord
(Repeat 2x)"""

GUITAR_TABS_SAMPLE = """\
// Amazing Grace
// Artist: John Newton
// Key: G

Verse 1:
G       C          G
Amazing grace, how sweet the sound
// let ring


Solo:
e|-----0-----|
B|---1---1---|"""

PLANNING_CENTER_SAMPLE = """\
Title: Amazing Grace
Artist: John Newton
Key: G

VERSE 1
[G]Amazing [C]grace, how [G]sweet the sound
<b>Softly</b>

CHORUS
[C]Praise the [G]Lord"""


@pytest.fixture
def chordpro_sample():
    """Two-section ChordPro song in G"""
    return CHORDPRO_SAMPLE


@pytest.fixture
def onsong_sample():
    return ONSONG_SAMPLE


@pytest.fixture
def songbook_sample():
    return SONGBOOK_SAMPLE


@pytest.fixture
def nashville_sample():
    return NASHVILLE_SAMPLE


@pytest.fixture
def guitar_tabs_sample():
    return GUITAR_TABS_SAMPLE


@pytest.fixture
def planning_center_sample():
    return PLANNING_CENTER_SAMPLE


@pytest.fixture
def samples():
    """One sample document per notation format"""
    return {
        NotationFormat.CHORDPRO: CHORDPRO_SAMPLE,
        NotationFormat.ONSONG: ONSONG_SAMPLE,
        NotationFormat.SONGBOOK: SONGBOOK_SAMPLE,
        NotationFormat.NASHVILLE: NASHVILLE_SAMPLE,
        NotationFormat.GUITAR_TABS: GUITAR_TABS_SAMPLE,
        NotationFormat.PLANNING_CENTER: PLANNING_CENTER_SAMPLE,
    }


@pytest.fixture
def amazing_grace(chordpro_sample):
    """The ChordPro sample parsed into a Chordsheet"""
    return ChordProParser().parse(chordpro_sample)
