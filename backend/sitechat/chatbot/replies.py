def greeting():
    return (
        "Willkommen beim Kundenservice der Headline Agentur. "
        "Wie können wir Sie heute unterstützen?"
    )

def ask_name():
    return "Vielen Dank. Bitte nennen Sie uns Ihren Vor- und Nachnamen."

def ask_email():
    return "Danke. Bitte nennen Sie nun Ihre E-Mail-Adresse."

def ask_phone():
    return "Danke. Bitte nennen Sie abschließend Ihre Telefonnummer."

def invalid_email():
    return "Bitte geben Sie eine gültige E-Mail-Adresse an."

def invalid_phone():
    return "Bitte geben Sie eine gültige Telefonnummer an."

def onboarding_done():
    return (
        "Vielen Dank. Ein Ansprechpartner aus unserem Team "
        "wird sich in Kürze bei Ihnen melden."
    )
