# otp.py

"""Zeitbasierte Einmal-Passwörter (HOTP/TOTP, RFC 4226 / RFC 6238).

Die Cloud-Lambda stempelt jeden Aufruf mit einem Code aus dem gemeinsamen
Secret, der Controller prüft ihn. Es gibt keinen gespeicherten Zähler, der
Zähler ist nur das aktuelle Zeitfenster.
"""

import hashlib
import hmac
import math
import struct
import time

DIGITS = 6
DEFAULT_WINDOW_SECONDS = 30


def _key(secret):
    if secret is None:
        return b""
    if isinstance(secret, bytes):
        return secret
    return secret.encode("utf-8")


def hotp(secret, counter):
    """Zählerbasierter Code: HMAC-SHA1 + dynamische Trunkierung."""
    digest = hmac.new(_key(secret), struct.pack(">Q", counter), hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    value = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF
    return str(value % 10 ** DIGITS).zfill(DIGITS)


def time_counter(now, window_seconds=DEFAULT_WINDOW_SECONDS):
    return int(math.floor(now / window_seconds))


def generate(secret, clock=time.time, window_seconds=DEFAULT_WINDOW_SECONDS):
    """Code für das aktuelle Zeitfenster."""
    return hotp(secret, time_counter(clock(), window_seconds))


def verify(secret, token, clock=time.time, window_seconds=DEFAULT_WINDOW_SECONDS, drift=1):
    """Prüft einen Code gegen das aktuelle Fenster und `drift` Nachbarfenster.

    Die Nachbarfenster fangen Uhrabweichungen zwischen Lambda und
    Controller ab.
    """
    if not isinstance(token, str) or len(token) != DIGITS or not (token.isascii() and token.isdigit()):
        return False

    counter = time_counter(clock(), window_seconds)
    matched = False
    for candidate in range(counter - drift, counter + drift + 1):
        if candidate < 0:
            continue
        # alle Fenster prüfen, konstante Laufzeit
        if hmac.compare_digest(hotp(secret, candidate), token):
            matched = True
    return matched
