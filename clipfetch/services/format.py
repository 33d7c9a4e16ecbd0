from clipfetch.models.internal import MediaTarget, RetrievalIntent

VIDEO_MEDIA_TYPES = {
    'mp4': 'video/mp4',
    'webm': 'video/webm',
    'mkv': 'video/x-matroska',
}

AUDIO_MEDIA_TYPES = {
    'mp3': 'audio/mpeg',
    'm4a': 'audio/mp4',
    'webm': 'audio/webm',
    'opus': 'audio/ogg',
    'ogg': 'audio/ogg',
}

class FormatDecision:
    """Make format decisions"""

    @staticmethod
    def media_type_for(ext: str, audio_only: bool) -> str:
        """Content type of the file yt-dlp actually produced"""
        ext = ext.lower().lstrip('.')
        if audio_only:
            return AUDIO_MEDIA_TYPES.get(ext, 'application/octet-stream')
        return VIDEO_MEDIA_TYPES.get(ext, 'application/octet-stream')

    @staticmethod
    def decide(intent: RetrievalIntent) -> MediaTarget:
        """Map the requested mode/quality/container onto a yt-dlp selector"""
        if intent.audio_only:
            label = f"{intent.bitrate}kbps"
            if intent.container == 'mp3':
                # yt-dlp converts with --extract-audio --audio-format mp3
                return MediaTarget(
                    format_str='bestaudio',
                    ext='mp3',
                    media_type='audio/mpeg',
                    label=label,
                    extract_audio=True
                )
            if intent.container == 'm4a':
                return MediaTarget(
                    format_str='bestaudio[ext=m4a]/bestaudio',
                    ext='m4a',
                    media_type='audio/mp4',
                    label=label,
                    extract_audio=True
                )
            return MediaTarget(
                format_str='bestaudio[ext=webm]/bestaudio',
                ext='webm',
                media_type='audio/webm',
                label=label
            )

        height = intent.quality
        return MediaTarget(
            format_str=f"bestvideo[height<={height}]+bestaudio/best[height<={height}]",
            ext=intent.container,
            media_type=VIDEO_MEDIA_TYPES.get(intent.container, 'application/octet-stream'),
            label=f"{height}p"
        )
