"""
Localized reply templates for the dialogue and chat service.

Every user-facing message lives here in English and Hindi. Unknown
language codes fall back to English, as do keys missing from a language.
"""

REPLY_TEMPLATES: dict[str, dict[str, str]] = {
    "en": {
        "greeting": "Hello! How can I help?\n- book appointment\n- check booking",
        "contact": "Phone: {phone}\nEmail: {email}",
        "ask_name": "What is your name?",
        "ask_phone": "Thanks {name}! What is your mobile number?",
        "invalid_phone": "Please enter a valid 10-digit mobile number.",
        "ask_date": "Which date? (e.g. 26, tomorrow)",
        "invalid_date": "Please enter a valid date.",
        "ask_time": "What time? (e.g. 10am, 3pm)",
        "invalid_time": "Please enter a valid time.",
        "confirm_summary": (
            "Booking:\nName: {name}\nPhone: {phone}\nDate: {date}\nTime: {time}\n"
            "Service: {service}\n\nConfirm? (yes/no)"
        ),
        "booking_created": "Booking confirmed! ID: {ref}",
        "booking_discarded": "Booking cancelled.",
        "check_ask_phone": "Please share your mobile number.",
        "cancel_ask_phone": "Which mobile number should I cancel the booking for?",
        "update_ask_phone": "Which mobile number is the booking under?",
        "no_booking_for_phone": "No booking found for {phone}.",
        "booking_found": "Booking:\nName: {name}\nDate: {date}\nTime: {time}\nStatus: {status}",
        "bookings_cancelled": "Cancelled {count} booking(s).",
        "nothing_to_cancel": "No active booking found for {phone}.",
        "ask_new_schedule": "What is the new date or time?",
        "booking_updated": "Booking updated!\nDate: {date}\nTime: {time}",
        "flow_aborted": "Okay, stopped. How else can I help?",
        "no_documents": "No information found. Please upload a PDF first.",
        "upstream_error": "Sorry, something went wrong. Please try again in a moment.",
    },
    "hi": {
        "greeting": "नमस्ते! कैसे मदद करूं?\n- book appointment\n- check booking",
        "contact": "फोन: {phone}\nईमेल: {email}",
        "ask_name": "आपका नाम क्या है?",
        "ask_phone": "धन्यवाद {name}! मोबाइल नंबर?",
        "invalid_phone": "सही 10 अंकों का नंबर दें।",
        "ask_date": "तारीख? (26, tomorrow)",
        "invalid_date": "सही तारीख बताएं।",
        "ask_time": "समय? (10am, 3pm)",
        "invalid_time": "सही समय बताएं।",
        "confirm_summary": (
            "बुकिंग:\nनाम: {name}\nफोन: {phone}\nतारीख: {date}\nसमय: {time}\n"
            "सेवा: {service}\n\nकन्फर्म करें? (हां/नहीं)"
        ),
        "booking_created": "बुकिंग कन्फर्म! ID: {ref}",
        "booking_discarded": "बुकिंग रद्द।",
        "check_ask_phone": "मोबाइल नंबर?",
        "cancel_ask_phone": "कैंसिल के लिए नंबर?",
        "update_ask_phone": "अपडेट के लिए नंबर?",
        "no_booking_for_phone": "{phone} से कोई बुकिंग नहीं।",
        "booking_found": "बुकिंग:\nनाम: {name}\nतारीख: {date}\nसमय: {time}\nस्थिति: {status}",
        "bookings_cancelled": "{count} बुकिंग कैंसिल हो गई।",
        "nothing_to_cancel": "{phone} से कोई सक्रिय बुकिंग नहीं मिली।",
        "ask_new_schedule": "नई तारीख/समय?",
        "booking_updated": "बुकिंग अपडेट!\nतारीख: {date}\nसमय: {time}",
        "flow_aborted": "ठीक है, रोक दिया। और कैसे मदद करूं?",
        "no_documents": "कोई जानकारी नहीं मिली। कृपया पहले PDF अपलोड करें।",
        "upstream_error": "माफ़ कीजिए, कुछ गड़बड़ हो गई। कृपया थोड़ी देर बाद फिर कोशिश करें।",
    },
}

FALLBACK_LANGUAGE = "en"


def render(key: str, language: str = FALLBACK_LANGUAGE, **values) -> str:
    """Format the template ``key`` in ``language``.

    Raises:
        KeyError: If no language defines ``key``.
    """
    templates = REPLY_TEMPLATES.get(language, REPLY_TEMPLATES[FALLBACK_LANGUAGE])
    template = templates.get(key) or REPLY_TEMPLATES[FALLBACK_LANGUAGE][key]
    return template.format(**values)
