"""
Utils Package

Helper modules:
    - path_utils: file names, extensions, content types
    - validation_utils: pre-queue validation and format detection
    - ffmpeg_utils: FFmpeg command builders and subprocess helpers
"""
