"""
Internationalization (i18n) module for the ACME ownership verifier.

Provides translations for all user-facing CLI messages in English (en) and
German (de).
"""

from typing import Optional


SUPPORTED_LANGUAGES = frozenset({"en", "de"})
DEFAULT_LANGUAGE = "en"


# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Ownership status gate
    "ownership.completed": {
        "en": "Domain verification for {domain} has been completed.",
        "de": "Die Domain-Verifizierung für {domain} ist abgeschlossen.",
    },
    "ownership.not_required": {
        "en": (
            "Domain verification for {domain} is not necessary; https has not "
            "been configured for this domain in its current location."
        ),
        "de": (
            "Eine Domain-Verifizierung für {domain} ist nicht nötig; https ist "
            "für diese Domain an ihrem aktuellen Ort nicht eingerichtet."
        ),
    },
    "ownership.domain_missing": {
        "en": (
            "The domain {domain} has not been added to the {site_env} "
            "environment. Add it to the environment, then run this command again."
        ),
        "de": (
            "Die Domain {domain} wurde der Umgebung {site_env} nicht hinzugefügt. "
            "Füge sie der Umgebung hinzu und führe den Befehl erneut aus."
        ),
    },

    # Challenge artifacts
    "challenge.file_written": {
        "en": "Wrote ACME challenge to file {filename}",
        "de": "ACME-Challenge in Datei {filename} geschrieben",
    },
    "challenge.file_write_failed": {
        "en": "Failed writing to {filename}: {error}",
        "de": "Schreiben nach {filename} fehlgeschlagen: {error}",
    },
    "challenge.file_instructions": {
        "en": "Please copy this file to your web server so that it will be served from the URL",
        "de": "Bitte kopiere diese Datei auf deinen Webserver, sodass sie unter folgender URL ausgeliefert wird",
    },
    "challenge.dns_instructions": {
        "en": "Create a DNS txt record containing:",
        "de": "Lege einen DNS-TXT-Eintrag mit folgendem Inhalt an:",
    },
    "challenge.next_step": {
        "en": "After this is complete, run {command}",
        "de": "Anschließend führe {command} aus",
    },

    # Verification
    "verify.started": {
        "en": "Verifying {challenge_type} challenge for {domain}; this can take a few minutes...",
        "de": "Prüfe {challenge_type}-Challenge für {domain}; das kann einige Minuten dauern...",
    },
    "verify.already_complete": {
        "en": "Ownership verification for {domain} is complete!",
        "de": "Die Inhaberschaftsprüfung für {domain} ist abgeschlossen!",
    },
    "verify.success": {
        "en": "Ownership verification is complete!",
        "de": "Die Inhaberschaftsprüfung ist abgeschlossen!",
    },
    "verify.deploy_notice": {
        "en": "Your HTTPS certificate will be deployed to the Global CDN shortly.",
        "de": "Dein HTTPS-Zertifikat wird in Kürze im globalen CDN bereitgestellt.",
    },
    "verify.failed": {
        "en": "Ownership verification was not successful.",
        "de": "Die Inhaberschaftsprüfung war nicht erfolgreich.",
    },
    "verify.timed_out": {
        "en": "Ownership verification did not finish after {attempts} status checks.",
        "de": "Die Inhaberschaftsprüfung wurde nach {attempts} Statusabfragen nicht abgeschlossen.",
    },
    "verify.double_check": {
        "en": "Double-check that your challenge is being served correctly.",
        "de": "Prüfe, ob deine Challenge korrekt ausgeliefert wird.",
    },
    "verify.raw_result": {
        "en": "Raw verification result:",
        "de": "Rohes Prüfergebnis:",
    },
    "verify.see_docs": {
        "en": "See {link} for assistance",
        "de": "Hilfe findest du unter {link}",
    },
    "verify.contact_support": {
        "en": "or contact support.",
        "de": "oder wende dich an den Support.",
    },
    "verify.contact_support_reference": {
        "en": "or contact support with reference \"{reference}\".",
        "de": "oder wende dich mit der Referenz \"{reference}\" an den Support.",
    },
    "verify.challenge_changed": {
        "en": "The old challenge cannot be tried again.",
        "de": "Die alte Challenge kann nicht erneut versucht werden.",
    },
    "verify.update_dns": {
        "en": "Please update your DNS to serve the new challenge below:",
        "de": "Bitte aktualisiere dein DNS mit der neuen Challenge:",
    },
    "verify.regenerate_file": {
        "en": "Please run {command} again to obtain a new challenge file.",
        "de": "Bitte führe {command} erneut aus, um eine neue Challenge-Datei zu erhalten.",
    },
    "verify.cancelled": {
        "en": "Verification cancelled.",
        "de": "Prüfung abgebrochen.",
    },

    # HTTPS status summary
    "status.required": {
        "en": (
            "The domain {domain} has not completed its pre-authentication checks "
            "yet. Please confirm that a dns-txt record (dns-01) or an http "
            "verification file (http-01) has been correctly set up."
        ),
        "de": (
            "Die Domain {domain} hat ihre Vorab-Authentifizierung noch nicht "
            "abgeschlossen. Bitte prüfe, ob ein DNS-TXT-Eintrag (dns-01) oder eine "
            "HTTP-Prüfdatei (http-01) korrekt eingerichtet ist."
        ),
    },
    "status.completed": {
        "en": "Verification checks for {domain} have been completed.",
        "de": "Die Prüfungen für {domain} sind abgeschlossen.",
    },
    "status.not_required": {
        "en": "Verification for {domain} is not required.",
        "de": "Für {domain} ist keine Verifizierung erforderlich.",
    },
    "status.unavailable": {
        "en": "Verification for {domain} is temporarily unavailable.",
        "de": "Die Verifizierung für {domain} ist vorübergehend nicht verfügbar.",
    },
    "status.unknown": {
        "en": "Unknown https verification status \"{status}\" for {domain}.",
        "de": "Unbekannter https-Prüfstatus \"{status}\" für {domain}.",
    },

    # CLI messages
    "cli.error": {
        "en": "Error: {message}",
        "de": "Fehler: {message}",
    },
    "cli.config_load_failed": {
        "en": "Error: Could not load config from {path}",
        "de": "Fehler: Konfiguration konnte nicht aus {path} geladen werden",
    },

    # Config command
    "config.header": {
        "en": "Configuration from: {path}",
        "de": "Konfiguration aus: {path}",
    },
    "config.not_found": {
        "en": "No configuration found at: {path}",
        "de": "Keine Konfiguration gefunden unter: {path}",
    },
    "config.init_hint": {
        "en": "Use 'config init' to create a default configuration.",
        "de": "Mit 'config init' wird eine Standardkonfiguration angelegt.",
    },
    "config.exists": {
        "en": "Configuration already exists at: {path}",
        "de": "Konfiguration existiert bereits unter: {path}",
    },
    "config.force_hint": {
        "en": "Use --force to overwrite.",
        "de": "Mit --force überschreiben.",
    },
    "config.created": {
        "en": "Configuration created at: {path}",
        "de": "Konfiguration angelegt unter: {path}",
    },
    "config.valid": {
        "en": "Configuration at {path} is valid.",
        "de": "Konfiguration unter {path} ist gültig.",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'verify.success')
        language: Language code ('en' or 'de'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('verify.success', 'en')
        'Ownership verification is complete!'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language) or translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            pass

    return message


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def has_translation(key: str, language: str) -> bool:
    """Check if a message key has a translation for the given language."""
    translations = TRANSLATIONS.get(key)
    if translations is None:
        return False
    return language in translations


def get_missing_translations(language: str) -> set[str]:
    """Get all message keys missing a translation for the given language."""
    return {
        key for key, translations in TRANSLATIONS.items()
        if language not in translations
    }


def validate_translations() -> dict[str, set[str]]:
    """
    Validate that all messages have translations for all supported languages.

    Returns:
        Dictionary mapping language codes to sets of missing keys.
        Empty dict if all translations are complete.
    """
    missing = {}
    for language in SUPPORTED_LANGUAGES:
        missing_keys = get_missing_translations(language)
        if missing_keys:
            missing[language] = missing_keys
    return missing
