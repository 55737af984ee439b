"""Localized user-facing strings.

Only the rendered text depends on the locale. Diagnostic codes and data
payloads are built independently of these tables.
"""

from __future__ import annotations

import logging

log = logging.getLogger(__name__)

DEFAULT_LOCALE = 'en'

_EN = {
    'diag.notGlobalButPublic':
        'Declaration is not GLOBAL but DEFDAT is PUBLIC.',
    'diag.globalButNotPublic':
        'Declaration is GLOBAL but DEFDAT is not PUBLIC.',
    'diag.variableNotDefined': 'Variable "{0}" is not defined.',
    'diag.didYouMean': 'Did you mean "{0}"?',
    'diag.nonAsciiChar':
        'Non-ASCII character "{0}" may cause errors in KUKA controller.',
    'diag.unclosedString': 'Unclosed string literal.',
    'diag.nameTooLong':
        'Name "{0}" exceeds KUKA 24-character limit ({1} characters).',
    'diag.nameStartsWithDigit': 'Name "{0}" cannot start with a digit.',
    'diag.invalidCharInName': 'Name "{0}" contains invalid characters.',
    'diag.velocityTooHigh':
        'Velocity {0} m/s exceeds maximum KUKA limit (3 m/s).',
    'diag.ptpVelocityTooHigh':
        'PTP velocity {0}% exceeds maximum allowed (100%).',
    'diag.toolNotInitialized':
        'Movement without $TOOL initialization. Use BAS(#INITMOV) or set '
        '$TOOL first.',
    'diag.baseNotInitialized':
        'Movement without $BASE initialization. Use BAS(#INITMOV) or set '
        '$BASE first.',
    'diag.unmatchedBlock': 'Unmatched "{0}", missing "{1}".',
    'diag.mismatchedBlock': '"{0}" has no matching "{1}".',
    'diag.duplicateName':
        'Duplicate {0} name "{1}" (first defined at line {2}).',
    'diag.deadCode': 'Unreachable code after "{0}".',
    'diag.emptyBlock': 'Empty "{0}" block.',
    'diag.waitWithoutTimeout':
        'WAIT FOR without timeout may cause indefinite wait.',
    'diag.dangerousHalt': 'HALT stops program execution. Use with caution.',
    'diag.realInSwitch':
        'REAL type cannot be used in SWITCH/CASE. Use INT or ENUM.',
    'diag.typeMismatch':
        'Type mismatch: assigning {0} to {1} variable "{2}".',
    'diag.shouldBeReal':
        'Value {0} contains decimal. Variable "{1}" should be REAL, not INT.',

    'action.declareAs': "Declare '{0}' as {1}",
    'action.replaceWith': "Change to '{0}'",
    'action.removeGlobal': "Remove 'GLOBAL' keyword",
    'action.addGlobal': "Add 'GLOBAL' keyword",
    'action.wrapWithFold': 'Wrap with ;FOLD ... ;ENDFOLD',
    'action.changeToInt': 'Change type to INT',
    'action.changeToReal': 'Change type to REAL',
    'action.wrapWithRound': 'Wrap with ROUND() for INT conversion',

    'hover.krlKeyword': 'KRL keyword',
    'hover.systemVariable': 'System variable',
    'hover.userFunction': '*User-defined function*',
    'hover.libraryFunction': '*Library function ({0})*',
    'hover.variable': '*Variable*',
    'hover.struct': 'STRUC',
    'hover.members': 'Members',

    'completion.userFunction': 'User-defined function',
    'completion.libraryFunction': 'Library function ({0})',
    'completion.systemVariable': 'System variable',
    'completion.variable': 'Variable',
    'completion.type': 'Type: {0}',

    'signature.userDefined': 'User-defined {0}',
    'signature.parameter': 'Parameter: {0}',

    'codeLens.metrics': '{0} lines | {1} calls',
}

_TR = {
    'diag.notGlobalButPublic': 'Bildirim GLOBAL değil ama DEFDAT PUBLIC.',
    'diag.globalButNotPublic': 'Bildirim GLOBAL ama DEFDAT PUBLIC değil.',
    'diag.variableNotDefined': '"{0}" değişkeni tanımlı değil.',
    'diag.didYouMean': '"{0}" mi demek istediniz?',
    'diag.nonAsciiChar':
        'ASCII olmayan karakter "{0}" KUKA kontrolcüsünde hata '
        'oluşturabilir.',
    'diag.unclosedString': 'Kapatılmamış string.',
    'diag.nameTooLong':
        '"{0}" adı KUKA 24 karakter sınırını aşıyor ({1} karakter).',
    'diag.nameStartsWithDigit': '"{0}" adı rakamla başlayamaz.',
    'diag.velocityTooHigh':
        '{0} m/s hız KUKA maksimum sınırını aşıyor (3 m/s).',
    'diag.ptpVelocityTooHigh': 'PTP hızı %{0} maksimumu aşıyor (%100).',
    'diag.toolNotInitialized':
        '$TOOL başlatılmadan hareket. BAS(#INITMOV) kullanın veya önce '
        '$TOOL ayarlayın.',
    'diag.baseNotInitialized':
        '$BASE başlatılmadan hareket. BAS(#INITMOV) kullanın veya önce '
        '$BASE ayarlayın.',
    'diag.unmatchedBlock': 'Eşleşmeyen "{0}", "{1}" eksik.',
    'diag.duplicateName': 'Yinelenen {0} adı "{1}" (ilk tanım satır {2}).',
    'diag.deadCode': '"{0}" sonrası erişilemeyen kod.',
    'diag.emptyBlock': 'Boş "{0}" bloğu.',
    'diag.waitWithoutTimeout':
        'Zaman aşımı olmadan WAIT FOR sonsuz beklemeye neden olabilir.',
    'diag.dangerousHalt':
        'HALT program yürütmesini durdurur. Dikkatli kullanın.',
    'diag.realInSwitch':
        'REAL tipi SWITCH/CASE içinde kullanılamaz. INT veya ENUM kullanın.',
    'diag.typeMismatch':
        'Tip uyuşmazlığı: {0} değeri {1} tipindeki "{2}" değişkenine '
        'atanıyor.',
    'diag.shouldBeReal':
        '{0} değeri ondalık içeriyor. "{1}" değişkeni INT değil REAL olmalı.',

    'action.declareAs': "'{0}' değişkenini {1} olarak tanımla",
    'action.removeGlobal': "'GLOBAL' anahtar kelimesini kaldır",
    'action.addGlobal': "'GLOBAL' anahtar kelimesini ekle",
    'action.wrapWithFold': ';FOLD ... ;ENDFOLD ile sar',
    'action.changeToInt': 'Tipi INT olarak değiştir',
    'action.changeToReal': 'Tipi REAL olarak değiştir',
    'action.wrapWithRound': 'INT dönüşümü için ROUND() ile sar',

    'hover.krlKeyword': 'KRL anahtar kelimesi',
    'hover.systemVariable': 'Sistem değişkeni',
    'hover.userFunction': '*Kullanıcı tanımlı fonksiyon*',
    'hover.variable': '*Değişken*',
    'hover.struct': 'Yapı',
    'hover.members': 'Üyeler',

    'completion.userFunction': 'Kullanıcı tanımlı fonksiyon',
    'completion.systemVariable': 'Sistem değişkeni',
    'completion.variable': 'Değişken',
    'completion.type': 'Tip: {0}',

    'signature.userDefined': 'Kullanıcı tanımlı {0}',
    'signature.parameter': 'Parametre: {0}',

    'codeLens.metrics': '{0} satır | {1} çağrı',
}

LOCALES = {'en': _EN, 'tr': _TR}

_current_locale = DEFAULT_LOCALE


def set_locale(locale: str) -> str:
    """Select the message table; 'tr-TR' selects 'tr'.

    Unknown locales fall back to English. Returns the locale in effect.
    """
    global _current_locale
    prefix = (locale or '').lower().split('-')[0].split('_')[0]
    if prefix in LOCALES:
        _current_locale = prefix
    else:
        log.info('Unsupported locale %r, using %s', locale, DEFAULT_LOCALE)
        _current_locale = DEFAULT_LOCALE
    return _current_locale


def get_locale() -> str:
    return _current_locale


def t(key: str, *args) -> str:
    """Look up a message and fill its {0}, {1}... placeholders."""
    message = LOCALES[_current_locale].get(key) or _EN.get(key, key)
    for i, arg in enumerate(args):
        message = message.replace('{%d}' % i, str(arg))
    return message
