"""
Seed Content - The default deck and question bank.

Deck: 3 time bonus cards (seconds), 3 powerups (opaque effects),
4 curses (minutes).

Question bank: two or three questions per category, with the
draw/keep counts of that category:
- Matching: draw 3, keep 1
- Measuring: draw 2, keep 1
- Radar: draw 2, keep 1 (reveals the hider's location)
- Thermometer: draw 1, keep 1
- Photo: draw 3, keep 2, 10 minute limit
- Tentacle: draw 4, keep 1
"""

from .models import Card, CardType, Question, QuestionCategory


# ============================================================================
# Deck
# ============================================================================

EXTRA_MINUTE = Card(
    card_id="extra_minute",
    card_type=CardType.TIME_BONUS,
    name="Extra Minute",
    description="Add 60 seconds to your hiding time",
    value=60,
)

TIME_BOOST = Card(
    card_id="time_boost",
    card_type=CardType.TIME_BONUS,
    name="Time Boost",
    description="Add 120 seconds to your hiding time",
    value=120,
)

BONUS_ROUND = Card(
    card_id="bonus_round",
    card_type=CardType.TIME_BONUS,
    name="Bonus Round",
    description="Add 180 seconds to your hiding time",
    value=180,
)

HAND_EXPANSION = Card(
    card_id="hand_expansion",
    card_type=CardType.POWERUP,
    name="Hand Expansion",
    description="Increase hand size by 2 cards",
    effect="handSize+2",
)

DOUBLE_DRAW = Card(
    card_id="double_draw",
    card_type=CardType.POWERUP,
    name="Double Draw",
    description="Draw twice as many cards next time",
    effect="doubleDraw",
)

QUESTION_SHIELD = Card(
    card_id="question_shield",
    card_type=CardType.POWERUP,
    name="Question Shield",
    description="Skip the next question without penalty",
    effect="skipQuestion",
)

FREEZE = Card(
    card_id="freeze",
    card_type=CardType.CURSE,
    name="FREEZE",
    description="Stay still for 3 minutes",
    value=3,
)

SLOW_MOTION = Card(
    card_id="slow_motion",
    card_type=CardType.CURSE,
    name="SLOW MOTION",
    description="Move at half speed for 5 minutes",
    value=5,
)

BLIND = Card(
    card_id="blind",
    card_type=CardType.CURSE,
    name="BLIND",
    description="Hide your location for 2 minutes",
    value=2,
)

STUN = Card(
    card_id="stun",
    card_type=CardType.CURSE,
    name="STUN",
    description="Cannot use cards for 4 minutes",
    value=4,
)

DEFAULT_DECK: list[Card] = [
    EXTRA_MINUTE,
    TIME_BOOST,
    BONUS_ROUND,
    HAND_EXPANSION,
    DOUBLE_DRAW,
    QUESTION_SHIELD,
    FREEZE,
    SLOW_MOTION,
    BLIND,
    STUN,
]


# ============================================================================
# Question bank
# ============================================================================

def _question(question_id: str, category: QuestionCategory, text: str, answer: str,
              draw: int, keep: int, time_limit: int = 300) -> Question:
    return Question(
        question_id=question_id,
        category=category,
        question=text,
        answer=answer,
        draw_cards=draw,
        keep_cards=keep,
        time_limit=time_limit,
    )


DEFAULT_QUESTIONS: list[Question] = [
    _question("matching_landmark", QuestionCategory.MATCHING,
              "What landmark is closest to your hiding spot?",
              "Answer with a specific landmark name", 3, 1),
    _question("matching_building", QuestionCategory.MATCHING,
              "What type of building are you near?",
              "Answer with building type", 3, 1),
    _question("matching_sign", QuestionCategory.MATCHING,
              "What color is the most prominent sign near you?",
              "Answer with a color", 3, 1),
    _question("measuring_transit", QuestionCategory.MEASURING,
              "How many steps from your hiding spot to the nearest transit stop?",
              "Answer with a number", 2, 1),
    _question("measuring_walk", QuestionCategory.MEASURING,
              "How many minutes walk to the nearest landmark?",
              "Answer with a number", 2, 1),
    _question("measuring_buildings", QuestionCategory.MEASURING,
              "How many buildings can you see from your spot?",
              "Answer with a number", 2, 1),
    _question("radar_street", QuestionCategory.RADAR,
              "What is the name of the street you are on?",
              "Answer with street name", 2, 1),
    _question("radar_intersection", QuestionCategory.RADAR,
              "What is the nearest intersection?",
              "Answer with intersection names", 2, 1),
    _question("thermometer_facing", QuestionCategory.THERMOMETER,
              "What direction are you facing?",
              "Answer with a cardinal direction", 1, 1),
    _question("thermometer_elevation", QuestionCategory.THERMOMETER,
              "What is the elevation of your hiding spot?",
              "Answer with approximate elevation", 1, 1),
    _question("photo_feature", QuestionCategory.PHOTO,
              "Take a photo of a unique feature near your hiding spot",
              "Submit a photo", 3, 2, time_limit=600),
    _question("photo_view", QuestionCategory.PHOTO,
              "Take a photo showing your view from the hiding spot",
              "Submit a photo", 3, 2, time_limit=600),
    _question("tentacle_features", QuestionCategory.TENTACLE,
              "Describe three distinct features visible from your hiding spot",
              "Answer with three features", 4, 1),
    _question("tentacle_landmarks", QuestionCategory.TENTACLE,
              "What are the three closest landmarks to your position?",
              "Answer with three landmark names", 4, 1),
]


def get_card_by_id(card_id: str, deck: list[Card] | None = None) -> Card | None:
    """Look up a card by ID."""
    for card in deck if deck is not None else DEFAULT_DECK:
        if card.card_id == card_id:
            return card
    return None
