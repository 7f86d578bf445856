"""
规则提示文案。按患者 locale 选择语言，未知 locale 回退到英文。
"""

DEFAULT_LOCALE = 'en'

MESSAGES = {
    'en': {
        'cycle_limit_reached': "New recipe required. Preparation cycle limit of {max_cycles} reached.",
        'expired_or_expiring': "New recipe required. Document is expired or about to expire.",
        'no_active_recipe': "Chronic patient with no active magistral recipe. One must be arranged.",
        'renewal_window': "Attention: recipe will expire soon. Plan the request for a new one.",
        'reprepare_cycle': "Time to prepare the next medication cycle for the patient.",
        'up_to_date': "Patient up to date with treatment. No immediate action required.",
        'not_chronic': "Patient is not enrolled in chronic care. No proactive follow-up required.",
    },
    'es': {
        'cycle_limit_reached': "Se requiere una nueva receta. Se alcanzó el límite de {max_cycles} ciclos de preparación.",
        'expired_or_expiring': "Se requiere una nueva receta. El documento está vencido o por vencer.",
        'no_active_recipe': "Paciente crónico sin receta magistral activa. Se debe gestionar una.",
        'renewal_window': "Atención: la receta vencerá pronto. Planifique la solicitud de una nueva.",
        'reprepare_cycle': "Es momento de preparar el próximo ciclo de medicamentos del paciente.",
        'up_to_date': "Paciente al día con su tratamiento. No se requiere acción inmediata.",
        'not_chronic': "El paciente no está en control crónico. No requiere seguimiento proactivo.",
    },
}

SUPPORTED_LOCALES = tuple(MESSAGES)


def normalize_locale(locale) -> str:
    """'es-CL' → 'es'；None / 不支持的语言 → DEFAULT_LOCALE。"""
    if not locale:
        return DEFAULT_LOCALE
    language = str(locale).replace('_', '-').split('-')[0].lower()
    return language if language in MESSAGES else DEFAULT_LOCALE


def render(key: str, locale=None, **params) -> str:
    return MESSAGES[normalize_locale(locale)][key].format(**params)
