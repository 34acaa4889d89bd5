"""CLI constants."""

GREEN = "\033[32m"
RESET = "\033[0m"

PROG = "chunkcdn"

DESCRIPTION = "Fetch files served as chunks by a chunkcdn reconstructor."

EPILOG = """Examples:
  chunkcdn list video.mp4
  chunkcdn download video.mp4
  chunkcdn download video.mp4 downloads/clip.mp4
  chunkcdn --host cdn.example.com --port 443 --scheme https list video.mp4
  chunkcdn server demo.appspot.com 443
  chunkcdn rebuild app/chunks.json app/chunk video.mp4 video.mp4"""

CONFIG_DIR_NAME = ".chunkcdn"
CONFIG_FILE_NAME = "config.json"
PARTIAL_SUFFIX = ".part"
