# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""GNSS Constants and Navigation Format Parameters"""

# GNSS System IDs
SYS_NONE = 0x00   # invalid / unknown
SYS_GPS = 0x01    # GPS
SYS_GLO = 0x02    # GLONASS
SYS_GAL = 0x04    # Galileo
SYS_BDS = 0x08    # BeiDou
SYS_QZS = 0x10    # QZSS

# Time System Parameters
GPST0 = [1980, 1, 6, 0, 0, 0]  # GPS time reference epoch

# Week numbering offsets relative to the GPS epoch
BDS_WEEK_OFFSET = 1356         # BDT week 0 == GPS week 1356

# Time arithmetic
SECONDS_PER_WEEK = 604800
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600

# Broadcast cadence
TOC_CUTOVER_PERIOD = 7200      # nominal cutovers fall on even 2-hour Toc
FRAME_PERIOD = 30              # subframe 1/2/3 cycle (s)
MIN_FIT_INTERVAL = 4.0          # hours

# Per-system validity spans (s)
GAL_VALIDITY = 4 * SECONDS_PER_HOUR
BDS_VALIDITY = 1 * SECONDS_PER_HOUR
GLO_HALF_VALIDITY = 15 * 60

# Navigation file format
MAX_LINE_LENGTH = 255          # longest physical line accepted
FIELD_WIDTH = 19               # D19.12 numeric field
FIELD_DECIMALS = 12
FIELDS_PER_LINE = 4
COMMENT_MARKER = '$'

# Continuation ("broadcast orbit") lines per record
ORBIT_LINES = {
    SYS_GPS: 7,
    SYS_GAL: 7,
    SYS_BDS: 7,
    SYS_QZS: 7,
    SYS_GLO: 3,
}

# Time system tag for each constellation's epochs (RINEX GLONASS epochs are UTC)
SYS_TIME_TAG = {
    SYS_GPS: 'GPS',
    SYS_GLO: 'UTC',
    SYS_GAL: 'GAL',
    SYS_BDS: 'BDS',
    SYS_QZS: 'QZS',
}

# QZSS PRNs in RINEX 3 are offset (J01 == PRN 193)
QZS_PRN_OFFSET = 192


def sys2char(sys):
    """Convert system ID to character"""
    syschar = {
        SYS_GPS: 'G',
        SYS_GLO: 'R',
        SYS_GAL: 'E',
        SYS_BDS: 'C',
        SYS_QZS: 'J',
    }
    return syschar.get(sys, ' ')


def char2sys(c):
    """Convert character to system ID"""
    charmap = {
        'G': SYS_GPS,
        'R': SYS_GLO,
        'E': SYS_GAL,
        'C': SYS_BDS,
        'J': SYS_QZS,
    }
    return charmap.get(c.upper(), SYS_NONE)


def sys2name(sys):
    """Human readable constellation name"""
    names = {
        SYS_GPS: 'GPS',
        SYS_GLO: 'GLONASS',
        SYS_GAL: 'Galileo',
        SYS_BDS: 'BeiDou',
        SYS_QZS: 'QZSS',
    }
    return names.get(sys, 'unknown')
