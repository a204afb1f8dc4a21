"""Centralized message constants for error messages, validation, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_SOURCE_ID = "Track source ID cannot be empty"
    EMPTY_EXTRACTOR = "Track extractor cannot be empty"

    # Resolution Errors
    EMPTY_QUERY = "Query cannot be empty"
    NO_SEARCH_RESULTS = "No results found for '{query}'"
    NO_EXTRACTED_RECORDS = "Nothing playable found at {link}"
    PLAYLISTS_DISABLED = "Playlist support is not configured"
    PLAYLIST_EMPTY = "Playlist {playlist_id} has no tracks"
    PLAYLIST_FETCH_FAILED = "Could not load playlist {playlist_id}: {error}"
    CANDIDATE_FAILED = "Could not resolve candidate {link}: {error}"

    # Pipeline Errors
    DOWNLOAD_PRODUCED_NOTHING = "Download produced no file for {link}"
    CONVERT_FAILED = "ffmpeg exited with code {returncode}: {stderr}"
    FFMPEG_NOT_FOUND = "ffmpeg executable not found: {path}"

    # Transport Errors
    VOICE_CHANNEL_NOT_FOUND = "Voice channel {channel_id} not found"
    VOICE_CONNECT_TIMEOUT = "Timed out connecting to voice channel {channel_id}"
    VOICE_NOT_CONNECTED = "Not connected to voice"
    VOICE_PLAY_FAILED = "Could not start playback: {error}"

    # External API Errors
    SPOTIFY_AUTH_FAILED = "Spotify authentication failed: {error}"
    SPOTIFY_REQUEST_FAILED = "Spotify request failed: {error}"
    SPOTIFY_NOT_CONFIGURED = "Spotify client credentials are not configured"

    # Database Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    INVALID_BITRATE = "Opus bitrate must look like '128k'"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Janitor
    JANITOR_REMOVED_PARTIAL = "Removed partial output %s"
    JANITOR_REMOVED_SCRATCH = "Removed scratch leftover %s"
    JANITOR_REMOVE_FAILED = "Failed to remove %s: %r"
    JANITOR_COMPLETED = "Startup sweep completed: %d partial, %d scratch files removed"

    # Cache Operations
    CACHE_HIT = "Cache hit for '%s'"
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_MISS_URL = "Cache miss for URL: %s"
    CACHE_RECORDED = "Recorded asset %s (link=%s)"
    CACHE_STALE_REMOVED = "Asset file for %s is missing, removed stale cache entry"
    CACHE_FORGOTTEN = "Forgot asset %s"
    CACHE_JOIN_INFLIGHT = "Joining in-flight request for '%s'"

    # Pipeline
    PIPELINE_STARTED = "Preparing asset %s"
    PIPELINE_DOWNLOADED = "Downloaded %s to %s"
    PIPELINE_CONVERTED = "Converted %s to %s"
    PIPELINE_READY = "Asset %s ready at %s"
    PIPELINE_FAILED = "Pipeline failed for %s at stage %s: %s"
    PIPELINE_SCRATCH_CLEANUP_FAILED = "Failed to remove scratch file %s: %r"

    # Resolution
    RESOLVE_REQUEST = "Resolving %s request '%s' (shuffle=%s)"
    RESOLVE_RECORD_SKIPPED = "Skipping unparseable record from %s: %s"
    RESOLVE_COMPLETED = "Resolved '%s' into %d candidates"

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_LOST = "Voice connection lost in guild %s; keeping %d queued entries"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_DISCONNECT_FAILED = "Error disconnecting voice in guild %s: %r"
    VOICE_AFTER_CALLBACK_ERROR = "Voice stream ended with error in guild %s: %r"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    PLAYBACK_STATE = "Guild %s: %s -> %s"
    PLAYBACK_SCHEDULER_STARTED = "Scheduler started for guild %s"
    PLAYBACK_SCHEDULER_EXITED = "Scheduler exited for guild %s (state=%s)"
    PLAYBACK_SCHEDULER_CRASHED = "Scheduler crashed for guild %s"
    PLAYBACK_NOTIFY_FAILED = "Failed to notify guild %s: %r"

    # Track Operations
    TRACK_FINISHED = "Track finished: %s in guild %s"
    TRACK_SKIPPED = "Skipped track: %s in guild %s"
    TRACK_DROPPED = "Dropped failed entry '%s' in guild %s: %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued %d entries at position %s in guild %s"
    QUEUE_CLEARED = "Cleared %s tracks from queue in guild %s"
    QUEUE_DISCARDED = "Discarded entry '%s' from guild %s"

    # Session/Guild Operations
    SESSION_CREATED = "Created session for guild %s"
    SKIP_REQUESTED = "Skip requested in guild %s"
    SKIP_IGNORED = "Skip ignored in guild %s (state=%s)"

    # Spotify
    SPOTIFY_AUTHENTICATED = "Spotify token acquired (expires in %ss)"
    SPOTIFY_TOKEN_EXPIRED = "Spotify token expired, re-authenticating"
    SPOTIFY_PLAYLIST_FETCHED = "Fetched %d items from playlist %s"
    SPOTIFY_DISABLED = "Spotify credentials not set; playlist support disabled"

    # yt-dlp / ffmpeg
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    YTDLP_FAILED_DOWNLOAD = "Failed to download %s"
    FFMPEG_COMMAND = "Running ffmpeg: %s"

    # Application Lifecycle
    BOT_STARTING = "Starting Guild Music Bot in {environment} mode"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_STARTUP_API_FAILED = "External API unavailable at startup: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to channel"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COMMAND_ERROR = "Command error in '%s': %s"

    # Chat surface
    COMMAND_DELETE_FAILED = "Could not delete command message in guild %s: %r"
    PLAY_REQUEST_FAILED = "Play request '%s' failed in guild %s: %s"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in chat.
    Keep them concise and friendly.
    """

    # Success Messages
    SUCCESS_QUEUED_ONE = "🎵 Queued **{title}** at position {position}."
    SUCCESS_QUEUED_PENDING = "🎵 Queued `{request}` at position {position}."
    SUCCESS_QUEUED_MANY = "🎵 Queued {count} tracks starting at position {position}."
    SUCCESS_QUEUE_CLEARED = "✅ Cleared {count} queued tracks."
    SUCCESS_SUMMONED = "👋 Joined **{channel}**."

    # Action Messages
    ACTION_SKIPPED = "⏭️ Skipping..."
    ACTION_DISCONNECTED = "👋 Disconnected from voice channel."
    ACTION_NOW_PLAYING = "▶️ Now playing **{title}** (requested by {user})"

    # Queue Display
    QUEUE_EMPTY = "The queue is empty."
    QUEUE_CURRENTLY_PLAYING = "Currently playing: {title}"
    QUEUE_ENTRY = "{position}) {title} - {duration} by {user}"
    QUEUE_PLACEHOLDER = "Getting info..."
    QUEUE_DOWNLOADING_SUFFIX = " (downloading)"
    QUEUE_MORE = "...and {count} more"

    # Error Messages
    ERROR_NOT_IN_VOICE = "❌ You need to be in a voice channel to use this command."
    ERROR_NOTHING_PLAYING = "Nothing is playing."
    ERROR_NOT_CONNECTED = "I'm not connected to a voice channel."
    ERROR_COULD_NOT_JOIN_VOICE = "❌ I couldn't join your voice channel."
    ERROR_TRACK_NOT_FOUND = "❌ Couldn't find anything for: {query}"
    ERROR_PLAYBACK_FAILED = "⚠️ Playback failed: {error}"
    ERROR_VOICE_LOST = "🔌 Lost the voice connection. Summon me again to resume the queue."
    ERROR_MISSING_QUERY = "❌ Usage: `{prefix}play [-r|--shuffle] <link|search|playlist>`"
    ERROR_COMMAND_FAILED_SEE_LOGS = "❌ Command failed. See logs."

    # Help
    HELP_TEXT = (
        "**Commands** (prefix `{prefix}`)\n"
        "`{prefix}play|p [-r|--shuffle] <link|search|playlist>` queue audio\n"
        "`{prefix}skip|s` skip the current track\n"
        "`{prefix}clear|c` clear waiting tracks\n"
        "`{prefix}queue|q` show the queue\n"
        "`{prefix}summon` join your voice channel\n"
        "`{prefix}disconnect|d` leave the voice channel\n"
        "`{prefix}help|h` show this message"
    )
