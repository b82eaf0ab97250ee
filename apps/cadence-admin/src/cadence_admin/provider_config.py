"""Provider-specific agent configuration.

Maps one voice profile onto the agent platform's wire schema. The two
providers have incompatible shapes, so each gets its own builder and
`build_voice_config` dispatches on `voiceConfig.provider` only.

Every builder here is pure: missing optional fields fall back to the
defaults below (a falsy value counts as missing) and nothing is validated.
"""

from __future__ import annotations

from collections.abc import Sequence

from .schemas import ElevenLabsVoiceConfig, GoogleLiveVoiceConfig, TranscriptionConfig, VoiceProfile

ELEVENLABS_TRANSCRIBER_MODEL = "nova-2"
GOOGLE_LIVE_TRANSCRIBER_MODEL = "nova-3-general"
GOOGLE_LIVE_SESSION_MODEL = "gemini-2.5-flash-preview-native-audio-dialog"

DEFAULT_LANGUAGE = "en-us"
DEFAULT_BACKGROUND_NOISE = "none"

ELEVENLABS_DEFAULTS = {
    "speed": 1,
    "stability": 0.5,
    "similarity_boost": 0.5,
    "style": 0,
    "utterance_threshold": 0,
}

GOOGLE_LIVE_DEFAULTS = {
    "voice_name": "Puck",
    "start_of_speech_sensitivity": "START_SENSITIVITY_MEDIUM",
    "end_of_speech_sensitivity": "END_SENSITIVITY_MEDIUM",
    "prefix_padding_ms": 20,
    "silence_duration_ms": 100,
    "utterance_threshold": 400,
}


def _first(values: Sequence[float] | None, default: float) -> float:
    """First element of a single-value slider, or `default` when absent/falsy."""
    if not values:
        return default
    return values[0] or default


def _audio_config(voice: ElevenLabsVoiceConfig | GoogleLiveVoiceConfig) -> dict:
    return {
        "recordAudio": True,
        "backgroundNoise": voice.background_noise or DEFAULT_BACKGROUND_NOISE,
        "enableWebCalling": True,
    }


def _build_elevenlabs(
    profile: VoiceProfile,
    voice: ElevenLabsVoiceConfig,
    elevenlabs_api_key: str | None,
) -> dict:
    transcription = profile.transcription_config
    language = transcription.language or DEFAULT_LANGUAGE

    speech_gen: dict = {
        "provider": "elevenlabs",
        "voiceId": voice.selected_voice,
        "language": profile.language or DEFAULT_LANGUAGE,
        "wordsReplacements": [
            {"word": item.original, "replacement": item.replacement}
            for item in voice.word_replacements or []
        ],
        "enableLongMessageBackchannelling": voice.long_message_backchanneling or False,
        "punctuationBreaks": list(voice.punctuation_breaks or []),
        "platformSpecific": {
            "elevenLabs": {
                "stability": _first(voice.stability, ELEVENLABS_DEFAULTS["stability"]),
                "similarity_boost": _first(voice.similarity_boost, ELEVENLABS_DEFAULTS["similarity_boost"]),
                "use_speaker_boost": voice.speaker_boost or False,
                "speed": _first(voice.speed, ELEVENLABS_DEFAULTS["speed"]),
                "style": _first(voice.style_exaggeration, ELEVENLABS_DEFAULTS["style"]),
            },
        },
    }
    if elevenlabs_api_key:
        speech_gen["apiKey"] = elevenlabs_api_key

    return {
        "speechGen": speech_gen,
        "config": _audio_config(voice),
        "transcriber": {
            "inputVoiceEnhancer": transcription.input_voice_enhancer,
            "provider": "deepgram",
            "modelId": ELEVENLABS_TRANSCRIBER_MODEL,
            "language": language,
            "utteranceThreshold": _first(
                transcription.utterance_threshold, ELEVENLABS_DEFAULTS["utterance_threshold"]
            ),
            "platformSpecific": {
                "deepgram": {
                    "language": language,
                    "keywords": list(transcription.keywords or []),
                },
            },
        },
    }


def _build_google_live(profile: VoiceProfile, voice: GoogleLiveVoiceConfig) -> dict:
    transcription = profile.transcription_config
    return {
        "config": _audio_config(voice),
        "transcriber": {
            "modelId": GOOGLE_LIVE_TRANSCRIBER_MODEL,
            "language": transcription.language or DEFAULT_LANGUAGE,
            "provider": "deepgram",
            "platformSpecific": {
                "deepgram": {"keywords": list(transcription.keywords or [])},
                "googleCloud": {"keywords": []},
            },
            "utteranceThreshold": _first(
                transcription.utterance_threshold, GOOGLE_LIVE_DEFAULTS["utterance_threshold"]
            ),
            "inputVoiceEnhancer": transcription.input_voice_enhancer,
        },
        "speechGen": {
            "provider": "google-live",
            "punctuationBreaks": list(voice.punctuation_breaks or []),
        },
    }


def build_voice_config(profile: VoiceProfile, elevenlabs_api_key: str | None = None) -> dict:
    """Build the agent `voiceConfig` block for one profile."""
    voice = profile.voice_config
    if isinstance(voice, GoogleLiveVoiceConfig):
        return _build_google_live(profile, voice)
    return _build_elevenlabs(profile, voice, elevenlabs_api_key)


def build_realtime_session(voice: GoogleLiveVoiceConfig) -> dict:
    """Build the Gemini Live session block for a Google Live profile.

    The transcription sub-blocks are present (as empty objects) only when
    their flag is true; a false or missing flag omits the key entirely.
    """
    session: dict = {
        "model": GOOGLE_LIVE_SESSION_MODEL,
        "responseModalities": ["AUDIO"],
        "speechConfig": {
            "voiceConfig": {
                "prebuiltVoiceConfig": {
                    "voiceName": voice.google_live_voice or GOOGLE_LIVE_DEFAULTS["voice_name"],
                },
            },
        },
    }
    if voice.input_audio_transcription:
        session["inputAudioTranscription"] = {}
    if voice.output_audio_transcription:
        session["outputAudioTranscription"] = {}
    session["realtimeInputConfig"] = {
        "automaticActivityDetection": {
            "disabled": not voice.enable_vad,
            "startOfSpeechSensitivity": (
                voice.start_of_speech_sensitivity or GOOGLE_LIVE_DEFAULTS["start_of_speech_sensitivity"]
            ),
            "endOfSpeechSensitivity": (
                voice.end_of_speech_sensitivity or GOOGLE_LIVE_DEFAULTS["end_of_speech_sensitivity"]
            ),
            "prefixPaddingMs": voice.prefix_padding_ms or GOOGLE_LIVE_DEFAULTS["prefix_padding_ms"],
            "silenceDurationMs": voice.silence_duration_ms or GOOGLE_LIVE_DEFAULTS["silence_duration_ms"],
        },
    }
    return session


def build_silence_detection(transcription: TranscriptionConfig) -> dict:
    return {
        "enabled": transcription.silence_detection,
        "timeoutSeconds": _first(transcription.timeout_seconds, 0),
        "endCallAfterNPhrases": _first(transcription.end_call_after_filler_phrases, 0),
    }


def build_agent_update(profile: VoiceProfile, elevenlabs_api_key: str | None = None) -> dict:
    """Build the full agent update payload sent when a profile is synced."""
    payload: dict = {
        "globalOptions": {
            "silenceDetection": build_silence_detection(profile.transcription_config),
        },
        "voiceConfig": build_voice_config(profile, elevenlabs_api_key),
    }
    voice = profile.voice_config
    if isinstance(voice, GoogleLiveVoiceConfig):
        payload["enableNodes"] = True
        payload["nodesSettings"] = {
            "geminiLiveOptions": {
                "sessionConfig": build_realtime_session(voice),
                "apiConfig": {"apiKey": ""},
                "internal": {"debug": False, "enableLogging": True},
            },
        }
    return payload
