import logging
import math
import re

logger = logging.getLogger(__name__)

# Ordered (keyword, category) pairs. The first keyword found inside an
# ingredient name wins, so declaration order matters.
CATEGORY_KEYWORDS = (
    # Proteins
    ('chicken', 'Proteins'), ('beef', 'Proteins'), ('pork', 'Proteins'),
    ('fish', 'Proteins'), ('salmon', 'Proteins'), ('shrimp', 'Proteins'),
    ('tofu', 'Proteins'), ('eggs', 'Proteins'), ('turkey', 'Proteins'),
    ('bacon', 'Proteins'), ('sausage', 'Proteins'), ('lamb', 'Proteins'),

    # Dairy
    ('milk', 'Dairy'), ('cheese', 'Dairy'), ('butter', 'Dairy'),
    ('yogurt', 'Dairy'), ('cream', 'Dairy'), ('sour cream', 'Dairy'),

    # Produce
    ('onion', 'Produce'), ('garlic', 'Produce'), ('tomato', 'Produce'),
    ('lettuce', 'Produce'), ('carrot', 'Produce'), ('celery', 'Produce'),
    ('pepper', 'Produce'), ('potato', 'Produce'), ('broccoli', 'Produce'),
    ('spinach', 'Produce'), ('cucumber', 'Produce'), ('apple', 'Produce'),
    ('banana', 'Produce'), ('lemon', 'Produce'), ('lime', 'Produce'),
    ('avocado', 'Produce'), ('mushroom', 'Produce'), ('zucchini', 'Produce'),

    # Grains & Bread
    ('bread', 'Grains & Bread'), ('rice', 'Grains & Bread'),
    ('pasta', 'Grains & Bread'), ('flour', 'Grains & Bread'),
    ('oats', 'Grains & Bread'), ('tortilla', 'Grains & Bread'),
    ('noodles', 'Grains & Bread'), ('quinoa', 'Grains & Bread'),

    # Pantry
    ('oil', 'Pantry'), ('salt', 'Pantry'), ('sugar', 'Pantry'),
    ('sauce', 'Pantry'), ('vinegar', 'Pantry'), ('broth', 'Pantry'),
    ('stock', 'Pantry'), ('honey', 'Pantry'), ('maple', 'Pantry'),
    ('beans', 'Pantry'), ('lentils', 'Pantry'),
)

DEFAULT_CATEGORY = 'Other'

# Known slots are walked in this order; anything else follows in mapping order.
MEAL_SLOT_ORDER = ('breakfast', 'lunch', 'dinner', 'snack')

_AMOUNT_RE = re.compile(r'^([\d./]+)\s*(.*)$', re.DOTALL)
_MIXED_NUMBER_RE = re.compile(r'^\d+\s+\d+/\d+')


def categorize_ingredient(key, keywords=CATEGORY_KEYWORDS):
    """Returns the shopping-aisle category for a normalized ingredient key."""
    for keyword, category in keywords:
        if keyword in key:
            return category
    return DEFAULT_CATEGORY


def _parse_number(token):
    try:
        if '/' in token:
            parts = token.split('/')
            if len(parts) != 2 or not all(p.isdigit() for p in parts):
                return None
            numerator, denominator = int(parts[0]), int(parts[1])
            if denominator == 0:
                return None
            value = numerator / denominator
        else:
            value = float(token)
    except (ValueError, OverflowError):
        return None
    return value if math.isfinite(value) else None


def parse_amount(amount):
    """
    Splits a free-text amount like "2 lbs" or "1/2 cup" into (quantity, unit).

    Anything without a usable leading number, including mixed numbers such as
    "1 1/2 cups", comes back as (1, <the trimmed text>). Never raises.
    """
    text = '' if amount is None else str(amount).strip()

    match = _AMOUNT_RE.match(text)
    if match and not _MIXED_NUMBER_RE.match(text):
        quantity = _parse_number(match.group(1))
        if quantity is not None:
            return quantity, match.group(2).strip()

    logger.debug("Unparsed amount %r, counting it as one unit", text)
    return 1.0, text


def format_quantity(quantity):
    """Renders 16.0 as "16" and 0.5 as "0.5"."""
    if float(quantity).is_integer():
        return str(int(quantity))
    return repr(float(quantity))


def _iter_meals(meals):
    if not meals:
        return
    if isinstance(meals, dict):
        slots = {slot.lower(): slot for slot in meals}
        ordered = [slots[s] for s in MEAL_SLOT_ORDER if s in slots]
        ordered += [slot for slot in meals if slot not in ordered]
        for slot in ordered:
            yield meals[slot]
    else:
        yield from meals


def iter_ingredient_lines(plan):
    """Yields every ingredient line of a meal plan in day, slot, line order."""
    for day in plan.get('days') or []:
        for meal in _iter_meals(day.get('meals')):
            if not meal:
                continue
            yield from meal.get('ingredients') or []


def aggregate_grocery_list(plan):
    """
    Consolidates every ingredient line in a meal plan into one grocery list.

    Lines are merged on their trimmed, lower-cased item name. Quantities are
    summed only when the unit text matches the first one seen for that item
    exactly; a line in any other unit is left out of the total rather than
    being added as if it were comparable.

    Returns {'categories': [{'name': ..., 'items': [{'item', 'amount',
    'category'}, ...]}, ...]} with categories and items sorted by name.
    """
    totals = {}
    for line in iter_ingredient_lines(plan):
        key = (line.get('item') or '').strip().lower()
        if not key:
            continue
        quantity, unit = parse_amount(line.get('amount'))

        existing = totals.get(key)
        if existing is None:
            totals[key] = {'amount': quantity, 'unit': unit,
                           'category': categorize_ingredient(key)}
        elif existing['unit'] == unit:
            existing['amount'] += quantity

    grouped = {}
    for key, data in totals.items():
        display_amount = format_quantity(data['amount'])
        if data['unit']:
            display_amount = f"{display_amount} {data['unit']}"
        grouped.setdefault(data['category'], []).append({
            'item': key[0].upper() + key[1:],
            'amount': display_amount,
            'category': data['category'],
        })

    return {
        'categories': [
            {'name': name, 'items': sorted(items, key=lambda i: i['item'])}
            for name, items in sorted(grouped.items())
        ]
    }


def grocery_list_to_text(grocery_list):
    """Renders a grocery list as a plain-text checklist for printing or download."""
    lines = ['GROCERY LIST', '=' * 40, '']
    for category in grocery_list.get('categories', []):
        lines.append(category['name'].upper())
        lines.append('-' * 20)
        for item in category['items']:
            lines.append(f"[ ] {item['amount']} {item['item']}")
        lines.append('')
    return '\n'.join(lines) + '\n'
