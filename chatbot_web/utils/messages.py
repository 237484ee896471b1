"""User-facing message catalog.

Every string that can reach an end user (HTTP error bodies, client
notices) is looked up here by key.  Indonesian is the default locale;
English is provided for deployments that set ``APP_LOCALE=en``.
"""

from __future__ import annotations

DEFAULT_LOCALE = "id"

MESSAGES: dict[str, dict[str, str]] = {
    "id": {
        # Validation
        "prompt_invalid_type": "Prompt harus berupa string yang valid.",
        "prompt_empty": "Prompt tidak boleh kosong.",
        "prompt_too_long": "Prompt terlalu panjang. Maksimal {max_length} karakter.",
        "prompt_too_short": "Prompt terlalu pendek. Minimal {min_length} karakter.",
        "prompt_disallowed": "Input mengandung konten yang tidak diizinkan.",
        # Rate limiting
        "global_rate_limited": "Terlalu banyak permintaan dari IP ini, silakan coba lagi setelah 15 menit.",
        "chat_rate_limited": "Terlalu banyak pesan chat. Silakan tunggu sebentar sebelum mengirim pesan lagi.",
        # Upstream
        "upstream_rate_limited": "Terlalu banyak permintaan ke AI. Silakan coba lagi setelah beberapa saat.",
        "upstream_misconfigured": "Konfigurasi server tidak valid. Silakan hubungi administrator.",
        "upstream_unavailable": "Layanan AI sedang tidak tersedia. Silakan coba lagi nanti.",
        "processing_failed": "Terjadi kesalahan dalam memproses permintaan Anda. Silakan coba lagi.",
        # Generic HTTP
        "not_found": "Endpoint tidak ditemukan",
        "method_not_allowed": "Metode tidak diizinkan",
        "internal_error": "Terjadi kesalahan server internal",
        # Client
        "client_empty_prompt": "Silakan masukkan pesan.",
        "client_offline": "Tidak ada koneksi internet. Silakan periksa koneksi Anda.",
        "client_busy": "Permintaan sebelumnya masih diproses.",
        "client_connection_failed": "Gagal terhubung ke server. Periksa koneksi internet Anda.",
        "client_too_many_requests": "Terlalu banyak permintaan. Silakan tunggu sebentar.",
        "client_server_error": "Server sedang mengalami masalah. Silakan coba lagi nanti.",
        "client_generic_error": "Terjadi kesalahan saat mengirim pesan.",
        "client_history_cleared": "Riwayat chat telah dihapus.",
    },
    "en": {
        "prompt_invalid_type": "Prompt must be a valid string.",
        "prompt_empty": "Prompt must not be empty.",
        "prompt_too_long": "Prompt is too long. Maximum {max_length} characters.",
        "prompt_too_short": "Prompt is too short. Minimum {min_length} characters.",
        "prompt_disallowed": "Input contains disallowed content.",
        "global_rate_limited": "Too many requests from this IP, please try again after 15 minutes.",
        "chat_rate_limited": "Too many chat messages. Please wait a moment before sending again.",
        "upstream_rate_limited": "Too many requests to the AI. Please try again shortly.",
        "upstream_misconfigured": "Server configuration is invalid. Please contact the administrator.",
        "upstream_unavailable": "The AI service is currently unavailable. Please try again later.",
        "processing_failed": "An error occurred while processing your request. Please try again.",
        "not_found": "Endpoint not found",
        "method_not_allowed": "Method not allowed",
        "internal_error": "Internal server error",
        "client_empty_prompt": "Please enter a message.",
        "client_offline": "No internet connection. Please check your connection.",
        "client_busy": "The previous request is still in progress.",
        "client_connection_failed": "Could not reach the server. Check your internet connection.",
        "client_too_many_requests": "Too many requests. Please wait a moment.",
        "client_server_error": "The server is having problems. Please try again later.",
        "client_generic_error": "Something went wrong while sending the message.",
        "client_history_cleared": "Chat history cleared.",
    },
}


def get_message(key: str, locale: str | None = None, **params: object) -> str:
    """Return the localized message for ``key``.

    Unknown locales fall back to :data:`DEFAULT_LOCALE`.  ``params`` are
    substituted with :meth:`str.format`.
    """
    catalog = MESSAGES.get(locale or DEFAULT_LOCALE, MESSAGES[DEFAULT_LOCALE])
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE][key]
    return template.format(**params) if params else template
