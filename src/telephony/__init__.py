"""Telephony audio helpers.

Twilio Media Streams deliver inbound call audio as base64 G.711 mu-law at 8 kHz mono;
this package turns it into the linear PCM the speech recognizer consumes.
"""
