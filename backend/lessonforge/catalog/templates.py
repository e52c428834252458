"""Built-in question templates. Placeholders are {name}; {answer} is reserved."""

from lessonforge.models.question import QuestionTemplate, numbers, text

MATH_TEMPLATES: list[QuestionTemplate] = [
    QuestionTemplate(
        id="math_addition_gems",
        subject="mathematics",
        skill_area="addition",
        type="word_problem",
        difficulty_level=1,
        text_pattern=(
            "At the {location}, {character} collected {num1} {item}. Later, they found "
            "{num2} more {item}. How many {item} does {character} have in total?"
        ),
        variable_domains={
            "location": text("magical forest", "crystal cave", "treasure island", "enchanted garden",
                             "wonder park", "star valley", "rainbow bridge"),
            "character": text("Explorer Maya", "Scientist Luna", "Detective Riley", "Captain Alex",
                              "Artist Sam", "Chef Jordan", "Pilot Casey"),
            "item": text("gems", "crystals", "coins", "flowers", "shells", "books", "stars"),
            "num1": numbers(15, 23, 18, 27, 31, 19, 25, 22, 16, 29),
            "num2": numbers(12, 16, 14, 18, 13, 21, 17, 19, 15, 24),
        },
        answer_formula="num1 + num2",
        explanation_pattern=(
            "{character} started with {num1} {item} and found {num2} more. "
            "So {num1} + {num2} = {answer}."
        ),
        learning_objectives=("Addition", "Word problem solving", "Real-world application"),
    ),
    QuestionTemplate(
        id="math_subtraction_adventure",
        subject="mathematics",
        skill_area="subtraction",
        type="word_problem",
        difficulty_level=1,
        text_pattern=(
            "{character} started their {adventure} with {num1} {item}. They used {num2} "
            "{item} to {action}. How many {item} does {character} have left?"
        ),
        variable_domains={
            "character": text("Brave Knight Zoe", "Space Explorer Max", "Ocean Diver Aria",
                              "Mountain Climber Leo", "Forest Ranger Nova"),
            "adventure": text("epic quest", "space mission", "underwater expedition",
                              "mountain adventure", "jungle exploration"),
            "item": text("energy points", "magic supplies", "tools", "food portions", "special coins"),
            "num1": numbers(45, 52, 38, 41, 49, 36, 44, 47, 43, 50),
            "num2": numbers(18, 23, 16, 19, 21, 14, 17, 20, 15, 22),
            "action": text("solve puzzles", "power their ship", "build equipment", "feed animals",
                           "unlock doors"),
        },
        answer_formula="num1 - num2",
        explanation_pattern="{character} had {num1} {item} and used {num2}. So {num1} - {num2} = {answer}.",
        learning_objectives=("Subtraction", "Problem solving", "Story comprehension"),
    ),
    QuestionTemplate(
        id="math_multiplication_groups",
        subject="mathematics",
        skill_area="multiplication",
        type="word_problem",
        difficulty_level=2,
        text_pattern=(
            "In the {location}, there are {num1} groups of {item}. Each group has {num2} "
            "{item}. How many {item} are there in total?"
        ),
        variable_domains={
            "location": text("enchanted orchard", "robot factory", "butterfly garden",
                             "star observatory", "music hall", "art studio"),
            "item": text("magical apples", "dancing robots", "colorful butterflies", "twinkling stars",
                         "musical notes", "paint brushes"),
            "num1": numbers(6, 7, 8, 9, 4, 5, 3),
            "num2": numbers(7, 6, 5, 4, 8, 9, 12),
        },
        answer_formula="num1 * num2",
        explanation_pattern="There are {num1} groups with {num2} {item} each. So {num1} × {num2} = {answer}.",
        learning_objectives=("Multiplication", "Grouping", "Arrays"),
    ),
    QuestionTemplate(
        id="math_multiplication_facts",
        subject="mathematics",
        skill_area="multiplication",
        type="calculation",
        difficulty_level=3,
        text_pattern="What is {num1} × {num2}?",
        variable_domains={
            "num1": numbers(6, 7, 8, 9, 11, 12),
            "num2": numbers(6, 7, 8, 9, 11, 12),
        },
        answer_formula="num1 * num2",
        explanation_pattern="{num1} groups of {num2} make {answer}, so {num1} × {num2} = {answer}.",
        learning_objectives=("Multiplication tables",),
    ),
]
