INTRO = "intro"
ASK_NAME = "ask_name"
ASK_EMAIL = "ask_email"
ASK_PHONE = "ask_phone"
DONE = "done"

ONBOARDING_STEPS = [INTRO, ASK_NAME, ASK_EMAIL, ASK_PHONE, DONE]
