"""Localized text templates for draft prompts, must-cover phrases and fallback copy.

Every template lives in a single table keyed by ``(language, template_id)`` and
is rendered with :class:`string.Template` substitution (``$name``), so JSON
braces inside templates need no escaping.
"""

from __future__ import annotations

import logging
from string import Template

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "it"
SUPPORTED_LANGUAGES = ("it", "ru", "en")

_JSON_SCHEMA = """{
  "title": "string",
  "summary": "string",
  "description": "string",
  "highlights": ["string", "string", "string"],
  "disclaimer": "string",
  "seo": {
    "keywords": ["string", "string", "string"],
    "metaDescription": "string"
  }
}"""

_IT: dict[str, str] = {
    "tone.professional": "Usa un tono professionale, formale e competente",
    "tone.informal": "Usa un tono amichevole, informale e colloquiale",
    "tone.premium": "Usa un tono elegante, esclusivo e raffinato",
    "length.short": "Mantieni le descrizioni concise e dirette",
    "length.medium": "Usa descrizioni di lunghezza media, equilibrate",
    "length.long": "Crea descrizioni dettagliate e approfondite",
    "system": """Sei un assistente specializzato nella creazione di annunci immobiliari professionali in italiano.

REGOLE GENERALI:
- Scrivi sempre in italiano fluente e naturale
- $tone_instructions
- $length_instructions
- Ogni paragrafo deve contenere almeno 2 fatti concreti tratti dai dati forniti
- Non inventare informazioni non fornite: niente indirizzi, marchi o materiali inventati
- Usa un linguaggio inclusivo e rispettoso

AFFERMAZIONI VIETATE:
- Qualsiasi forma di discriminazione o preferenza verso gli inquilini o gli acquirenti
- Superlativi non verificabili ("il migliore", "unico al mondo")
- Garanzie assolute ("garantito", "senza rischi")
- Affermazioni mediche o terapeutiche

Rispondi sempre in formato JSON valido.""",
    "developer": """Genera un JSON con questa struttura esatta:
$schema

STRUTTURA DELLA DESCRIZIONE:
- "description" contiene esattamente 5 paragrafi separati da una riga vuota
- Ordine e lunghezza indicativa dei paragrafi:
  1. $label_intro: circa $intro parole
  2. $label_interior: circa $interior parole
  3. $label_exterior: circa $exterior parole
  4. $label_area_transport: circa $area_transport parole
  5. $label_terms: circa $terms parole

IMPORTANTE:
- Rispetta rigorosamente questa struttura JSON, senza campi extra
- "summary" tra $summary_min e $summary_max parole
- "highlights": 3-7 elementi, ciascuno di 3-10 parole
- "seo.keywords": 5-8 elementi rilevanti
- "seo.metaDescription": 120-160 caratteri
- Il JSON deve essere valido e parsabile""",
    "section.intro": "Introduzione",
    "section.interior": "Interni",
    "section.exterior": "Esterni ed edificio",
    "section.area_transport": "Zona e trasporti",
    "section.terms": "Condizioni",
    "user": """Crea un annuncio immobiliare per questa proprietà.

DATI PROPRIETÀ:
$listing_json

PIANO DEI CONTENUTI (parole per paragrafo):
$plan

FATTI OBBLIGATORI DA CITARE:
$required

FATTI FACOLTATIVI DA CITARE SE POSSIBILE:
$optional

Se alcuni dati sono limitati, concentrati su quelli disponibili senza inventare dettagli.""",
    "refine.system": """Sei un editor di annunci immobiliari in italiano. Migliori una bozza esistente senza aggiungere fatti nuovi.

REGOLE:
- $tone_instructions
- Ogni paragrafo deve contenere almeno 2 fatti concreti tratti dai dati forniti
- Nessuna discriminazione, nessun superlativo non verificabile, nessuna garanzia assoluta, nessuna affermazione medica
- Non inventare indirizzi, marchi o materiali

Rispondi sempre in formato JSON valido.""",
    "refine.user": """Rivedi la bozza seguente.

DATI PROPRIETÀ:
$listing_json

BOZZA ATTUALE:
$draft_json

PIANO DEI CONTENUTI (parole per paragrafo):
$plan

FATTI OBBLIGATORI:
$required

FATTI FACOLTATIVI:
$optional

Istruzioni:
- Aumenta la densità di fatti in ogni paragrafo
- Rispetta il numero di parole di ogni paragrafo
- Integra tutti i fatti obbligatori ancora mancanti
- Non introdurre informazioni che non compaiono nei dati""",
    "list.none": "(nessuno)",
    "fewshot.user": """Crea un annuncio immobiliare per questa proprietà.

DATI PROPRIETÀ:
{"type": "SALE", "propertyType": "apartment", "price": 320000, "userFields": {"city": "Torino", "district": "Crocetta", "squareMeters": 95, "rooms": 4, "floor": 2, "elevator": true, "balcony": true}}""",
    "fewshot.assistant": """{"title": "Quadrilocale di 95 m² con balcone in Crocetta, Torino", "summary": "In vendita a Torino, nel quartiere Crocetta, un quadrilocale di 95 m² al secondo piano con ascensore e balcone.", "description": "In vendita nel quartiere Crocetta di Torino un quadrilocale di 95 m² al prezzo di 320000 euro.\\n\\nL'appartamento dispone di 4 locali distribuiti su un unico livello di 95 m².\\n\\nL'unità si trova al secondo piano di un edificio servito da ascensore e dispone di un balcone.\\n\\nLa Crocetta è un quartiere residenziale di Torino servito dai mezzi pubblici cittadini.\\n\\nIl prezzo richiesto è di 320000 euro; tutti i dettagli sono da verificare in sede di visita.", "highlights": ["Quattro locali su 95 m²", "Secondo piano con ascensore", "Balcone nel quartiere Crocetta"], "disclaimer": "Le informazioni sono indicative e non costituiscono vincolo contrattuale. È necessario verificare tutti i dettagli prima della conclusione.", "seo": {"keywords": ["quadrilocale Torino", "appartamento Crocetta", "vendita Torino", "balcone", "ascensore"], "metaDescription": "Quadrilocale di 95 m² in vendita in Crocetta a Torino: secondo piano con ascensore, quattro locali e balcone. Prezzo 320000 euro."}}""",
    "must.location": "ubicazione: $value",
    "must.area": "superficie $value",
    "unit.area": "m²",
    "must.rooms": "$value locali",
    "must.bedrooms": "$value camere da letto",
    "must.bathrooms": "$value bagni",
    "must.floor": "piano $value",
    "must.elevator_yes": "con ascensore",
    "must.elevator_no": "senza ascensore",
    "must.outdoor": "spazio esterno: $value",
    "outdoor.balcony": "balcone",
    "outdoor.terrace": "terrazzo",
    "outdoor.garden": "giardino",
    "must.heating": "riscaldamento $value",
    "must.energy": "classe energetica $value",
    "must.walking": "a piedi: $value",
    "walk.metro": "metro $value",
    "walk.park": "parco $value",
    "walk.shops": "negozi $value",
    "unit.minutes": "min",
    "must.fees": "spese condominiali $value",
    "unit.fees": "€/mese",
    "transaction.sale": "vendita",
    "transaction.rent": "affitto",
    "fallback.title": "$property_type in $transaction",
    "fallback.price": " a €$price",
    "fallback.summary": "Interessante $property_type in $transaction$price_phrase.",
    "fallback.p1": "Proponiamo in $transaction questo immobile di tipo $property_type$price_phrase.",
    "fallback.p2": "Gli spazi interni sono descritti nella scheda completa dell'annuncio, disponibile su richiesta.",
    "fallback.p3": "Le caratteristiche dell'edificio e degli eventuali spazi esterni possono essere verificate durante la visita.",
    "fallback.p4": "Informazioni sulla zona e sui collegamenti sono disponibili contattando l'agenzia.",
    "fallback.p5": "Condizioni economiche e disponibilità sono da concordare; tutti i dettagli vanno verificati prima della conclusione.",
    "fallback.h1": "Immobile in $transaction disponibile ora",
    "fallback.h2": "Scheda completa disponibile su richiesta",
    "fallback.h3": "Visite da concordare con l'agenzia",
    "fallback.keyword": "immobile",
    "fallback.meta": "$property_type in $transaction$price_phrase. Scopri di più.",
    "disclaimer": "Le informazioni sono indicative e non costituiscono vincolo contrattuale. È necessario verificare tutti i dettagli prima della conclusione.",
}

_RU: dict[str, str] = {
    "tone.professional": "Используйте профессиональный, формальный и компетентный тон",
    "tone.informal": "Используйте дружелюбный, неформальный и разговорный тон",
    "tone.premium": "Используйте элегантный, эксклюзивный и изысканный тон",
    "length.short": "Делайте описания краткими и прямыми",
    "length.medium": "Используйте описания средней длины, сбалансированные",
    "length.long": "Создавайте детальные и углубленные описания",
    "system": """Вы - ассистент, специализирующийся на создании профессиональных объявлений о недвижимости на русском языке.

ОБЩИЕ ПРАВИЛА:
- Всегда пишите на естественном русском языке
- $tone_instructions
- $length_instructions
- Каждый абзац должен содержать не менее 2 конкретных фактов из предоставленных данных
- Не придумывайте информацию: никаких вымышленных адресов, брендов или материалов
- Используйте инклюзивный и уважительный язык

ЗАПРЕЩЕННЫЕ УТВЕРЖДЕНИЯ:
- Любая дискриминация или предпочтения в отношении арендаторов или покупателей
- Непроверяемые превосходные степени ("лучший", "уникальный в мире")
- Абсолютные гарантии ("гарантировано", "без рисков")
- Медицинские или терапевтические утверждения

Всегда отвечайте в формате валидного JSON.""",
    "developer": """Сгенерируйте JSON точно такой структуры:
$schema

СТРУКТУРА ОПИСАНИЯ:
- "description" содержит ровно 5 абзацев, разделенных пустой строкой
- Порядок и ориентировочный объем абзацев:
  1. $label_intro: около $intro слов
  2. $label_interior: около $interior слов
  3. $label_exterior: около $exterior слов
  4. $label_area_transport: около $area_transport слов
  5. $label_terms: около $terms слов

ВАЖНО:
- Строго соблюдайте эту структуру JSON, без дополнительных полей
- "summary" от $summary_min до $summary_max слов
- "highlights": 3-7 элементов, каждый из 3-10 слов
- "seo.keywords": 5-8 релевантных элементов
- "seo.metaDescription": 120-160 символов
- JSON должен быть валидным""",
    "section.intro": "Вступление",
    "section.interior": "Интерьер",
    "section.exterior": "Здание и внешние пространства",
    "section.area_transport": "Район и транспорт",
    "section.terms": "Условия",
    "user": """Создайте объявление о недвижимости для этого объекта.

ДАННЫЕ ОБЪЕКТА:
$listing_json

ПЛАН СОДЕРЖАНИЯ (слов на абзац):
$plan

ОБЯЗАТЕЛЬНЫЕ ФАКТЫ:
$required

ЖЕЛАТЕЛЬНЫЕ ФАКТЫ:
$optional

Если данных немного, опирайтесь на имеющиеся и не придумывайте детали.""",
    "refine.system": """Вы - редактор объявлений о недвижимости на русском языке. Вы улучшаете существующий черновик, не добавляя новых фактов.

ПРАВИЛА:
- $tone_instructions
- Каждый абзац должен содержать не менее 2 конкретных фактов из предоставленных данных
- Никакой дискриминации, непроверяемых превосходных степеней, абсолютных гарантий и медицинских утверждений
- Не придумывайте адреса, бренды или материалы

Всегда отвечайте в формате валидного JSON.""",
    "refine.user": """Отредактируйте следующий черновик.

ДАННЫЕ ОБЪЕКТА:
$listing_json

ТЕКУЩИЙ ЧЕРНОВИК:
$draft_json

ПЛАН СОДЕРЖАНИЯ (слов на абзац):
$plan

ОБЯЗАТЕЛЬНЫЕ ФАКТЫ:
$required

ЖЕЛАТЕЛЬНЫЕ ФАКТЫ:
$optional

Инструкции:
- Повысьте плотность фактов в каждом абзаце
- Соблюдайте объем каждого абзаца
- Добавьте все недостающие обязательные факты
- Не вводите информацию, которой нет в данных""",
    "list.none": "(нет)",
    "fewshot.user": """Создайте объявление о недвижимости для этого объекта.

ДАННЫЕ ОБЪЕКТА:
{"type": "RENT", "propertyType": "apartment", "price": 900, "userFields": {"city": "Рим", "squareMeters": 55, "rooms": 2, "floor": 1, "heating": "автономное"}}""",
    "fewshot.assistant": """{"title": "Двухкомнатная квартира 55 м² в аренду в Риме", "summary": "Сдается в аренду двухкомнатная квартира площадью 55 м² на первом этаже в Риме с автономным отоплением.", "description": "В Риме сдается в аренду квартира площадью 55 м² за 900 евро в месяц.\\n\\nКвартира состоит из 2 комнат общей площадью 55 м².\\n\\nОбъект расположен на первом этаже жилого здания, отопление автономное.\\n\\nКвартира находится в Риме, детали о районе уточняются при просмотре.\\n\\nАрендная плата составляет 900 евро в месяц; все детали необходимо проверить до заключения договора.", "highlights": ["Две комнаты на 55 м²", "Первый этаж жилого здания", "Автономное отопление в квартире"], "disclaimer": "Информация носит ориентировочный характер и не является договорным обязательством. Необходимо проверить все детали перед заключением.", "seo": {"keywords": ["аренда Рим", "квартира 55 м²", "двухкомнатная квартира", "автономное отопление", "первый этаж"], "metaDescription": "Двухкомнатная квартира 55 м² в аренду в Риме: первый этаж, автономное отопление, 900 евро в месяц. Узнайте подробности."}}""",
    "must.location": "расположение: $value",
    "must.area": "площадь $value",
    "unit.area": "м²",
    "must.rooms": "комнат: $value",
    "must.bedrooms": "спален: $value",
    "must.bathrooms": "санузлов: $value",
    "must.floor": "этаж $value",
    "must.elevator_yes": "с лифтом",
    "must.elevator_no": "без лифта",
    "must.outdoor": "открытое пространство: $value",
    "outdoor.balcony": "балкон",
    "outdoor.terrace": "терраса",
    "outdoor.garden": "сад",
    "must.heating": "отопление $value",
    "must.energy": "энергетический класс $value",
    "must.walking": "пешком: $value",
    "walk.metro": "метро $value",
    "walk.park": "парк $value",
    "walk.shops": "магазины $value",
    "unit.minutes": "мин",
    "must.fees": "коммунальные платежи $value",
    "unit.fees": "€/мес",
    "transaction.sale": "на продажу",
    "transaction.rent": "в аренду",
    "fallback.title": "$property_type $transaction",
    "fallback.price": " за €$price",
    "fallback.summary": "Интересная недвижимость $transaction$price_phrase.",
    "fallback.p1": "Предлагаем $transaction объект типа $property_type$price_phrase.",
    "fallback.p2": "Описание внутренних помещений доступно в полной карточке объявления по запросу.",
    "fallback.p3": "Характеристики здания и внешних пространств можно проверить во время просмотра.",
    "fallback.p4": "Информацию о районе и транспорте можно получить, связавшись с агентством.",
    "fallback.p5": "Условия и сроки обсуждаются отдельно; все детали необходимо проверить перед заключением.",
    "fallback.h1": "Объект $transaction доступен сейчас",
    "fallback.h2": "Полная карточка объекта по запросу",
    "fallback.h3": "Просмотры по договоренности с агентством",
    "fallback.keyword": "недвижимость",
    "fallback.meta": "$property_type $transaction$price_phrase. Узнать больше.",
    "disclaimer": "Информация носит ориентировочный характер и не является договорным обязательством. Необходимо проверить все детали перед заключением.",
}

_EN: dict[str, str] = {
    "tone.professional": "Use a professional, formal and competent tone",
    "tone.informal": "Use a friendly, informal and conversational tone",
    "tone.premium": "Use an elegant, exclusive and refined tone",
    "length.short": "Keep descriptions concise and direct",
    "length.medium": "Use medium-length, balanced descriptions",
    "length.long": "Create detailed and in-depth descriptions",
    "system": """You are an assistant specialized in creating professional real estate listings in English.

GENERAL RULES:
- Always write in fluent and natural English
- $tone_instructions
- $length_instructions
- Every paragraph must contain at least 2 concrete facts taken from the supplied data
- Do not invent information: no invented addresses, brands or materials
- Use inclusive and respectful language

FORBIDDEN CLAIMS:
- Any form of discrimination or preference regarding tenants or buyers
- Unverifiable superlatives ("the best", "unique in the world")
- Absolute guarantees ("guaranteed", "risk-free")
- Medical or therapeutic claims

Always respond in valid JSON format.""",
    "developer": """Generate a JSON object with exactly this structure:
$schema

DESCRIPTION STRUCTURE:
- "description" contains exactly 5 paragraphs separated by a blank line
- Paragraph order and approximate length:
  1. $label_intro: about $intro words
  2. $label_interior: about $interior words
  3. $label_exterior: about $exterior words
  4. $label_area_transport: about $area_transport words
  5. $label_terms: about $terms words

IMPORTANT:
- Follow this JSON structure strictly, with no extra fields
- "summary" between $summary_min and $summary_max words
- "highlights": 3-7 items, each 3-10 words long
- "seo.keywords": 5-8 relevant items
- "seo.metaDescription": 120-160 characters
- The JSON must be valid and parseable""",
    "section.intro": "Introduction",
    "section.interior": "Interior",
    "section.exterior": "Building and outdoor space",
    "section.area_transport": "Area and transport",
    "section.terms": "Terms",
    "user": """Create a real estate listing for this property.

PROPERTY DATA:
$listing_json

CONTENT PLAN (words per paragraph):
$plan

REQUIRED FACTS:
$required

OPTIONAL FACTS TO MENTION WHEN POSSIBLE:
$optional

If some data is limited, focus on what is available without inventing details.""",
    "refine.system": """You are an editor of real estate listings in English. You improve an existing draft without adding new facts.

RULES:
- $tone_instructions
- Every paragraph must contain at least 2 concrete facts taken from the supplied data
- No discrimination, no unverifiable superlatives, no absolute guarantees, no medical claims
- Do not invent addresses, brands or materials

Always respond in valid JSON format.""",
    "refine.user": """Revise the following draft.

PROPERTY DATA:
$listing_json

CURRENT DRAFT:
$draft_json

CONTENT PLAN (words per paragraph):
$plan

REQUIRED FACTS:
$required

OPTIONAL FACTS:
$optional

Instructions:
- Increase the factual density of every paragraph
- Respect the word count of every paragraph
- Work in every required fact that is still missing
- Do not introduce information that is not in the data""",
    "list.none": "(none)",
    "fewshot.user": """Create a real estate listing for this property.

PROPERTY DATA:
{"type": "SALE", "propertyType": "house", "price": 410000, "userFields": {"city": "Bologna", "squareMeters": 140, "bedrooms": 3, "bathrooms": 2, "garden": true, "energyClass": "C"}}""",
    "fewshot.assistant": """{"title": "Three-bedroom 140 m² house with garden in Bologna", "summary": "For sale in Bologna, a 140 m² house with three bedrooms, two bathrooms, a private garden and energy class C.", "description": "For sale in Bologna, a 140 m² house offered at 410000 euros.\\n\\nThe interior has 3 bedrooms and 2 bathrooms across 140 m² of living space.\\n\\nThe house has a private garden and is rated energy class C.\\n\\nThe property is located in Bologna; details on the neighborhood are available on request.\\n\\nThe asking price is 410000 euros; all details must be verified before signing.", "highlights": ["Three bedrooms and two bathrooms", "Private garden around the house", "Energy class C rating"], "disclaimer": "The information is indicative and does not constitute a contractual obligation. All details must be verified before conclusion.", "seo": {"keywords": ["house for sale Bologna", "three bedroom house", "house with garden", "140 m² house", "energy class C"], "metaDescription": "Three-bedroom 140 m² house for sale in Bologna with two bathrooms, a private garden and energy class C, at 410000 euros."}}""",
    "must.location": "location: $value",
    "must.area": "area $value",
    "unit.area": "m²",
    "must.rooms": "$value rooms",
    "must.bedrooms": "$value bedrooms",
    "must.bathrooms": "$value bathrooms",
    "must.floor": "floor $value",
    "must.elevator_yes": "with elevator",
    "must.elevator_no": "without elevator",
    "must.outdoor": "outdoor space: $value",
    "outdoor.balcony": "balcony",
    "outdoor.terrace": "terrace",
    "outdoor.garden": "garden",
    "must.heating": "heating $value",
    "must.energy": "energy class $value",
    "must.walking": "on foot: $value",
    "walk.metro": "metro $value",
    "walk.park": "park $value",
    "walk.shops": "shops $value",
    "unit.minutes": "min",
    "must.fees": "condo fees $value",
    "unit.fees": "€/month",
    "transaction.sale": "sale",
    "transaction.rent": "rent",
    "fallback.title": "$property_type for $transaction",
    "fallback.price": " at €$price",
    "fallback.summary": "Interesting $property_type for $transaction$price_phrase.",
    "fallback.p1": "This $property_type is offered for $transaction$price_phrase.",
    "fallback.p2": "Details of the interior are available in the full listing sheet on request.",
    "fallback.p3": "Building features and any outdoor space can be checked during a viewing.",
    "fallback.p4": "Information on the neighborhood and transport links is available from the agency.",
    "fallback.p5": "Terms and availability are to be agreed; all details must be verified before conclusion.",
    "fallback.h1": "Property for $transaction available now",
    "fallback.h2": "Full listing sheet on request",
    "fallback.h3": "Viewings arranged with the agency",
    "fallback.keyword": "property",
    "fallback.meta": "$property_type for $transaction$price_phrase. Learn more.",
    "disclaimer": "The information is indicative and does not constitute a contractual obligation. All details must be verified before conclusion.",
}

TEMPLATES: dict[tuple[str, str], str] = {
    (language, template_id): text
    for language, table in (("it", _IT), ("ru", _RU), ("en", _EN))
    for template_id, text in table.items()
}


def resolve_language(locale: str | None) -> str:
    """Map a BCP-47 locale such as ``ru-RU`` to a supported language code."""

    if not locale:
        return DEFAULT_LANGUAGE
    code = locale.replace("_", "-").split("-")[0].strip().lower()
    return code if code in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def render(language: str, template_id: str, **params: object) -> str:
    template = TEMPLATES.get((language, template_id))
    if template is None:
        logger.debug("No %s template for %s; using %s", template_id, language, DEFAULT_LANGUAGE)
        template = TEMPLATES[(DEFAULT_LANGUAGE, template_id)]
    return Template(template).substitute({"schema": _JSON_SCHEMA, **params})
