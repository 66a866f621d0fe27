"""
Built-in fitness knowledge table.

Static, compiled-in knowledge entries loaded once at startup by the
KnowledgeStore, plus the motivational quote list used by the error
fallback. Patterns are matched against lower-cased message text; see
knowledge_store.py for the scoring rules.
"""

from typing import List

from .models import Category, KnowledgeEntry


MOTIVATIONAL_QUOTES = [
    "The only bad workout is the one that didn't happen.",
    "Your body can do it. It's your mind you need to convince.",
    "Progress, not perfection, is the goal.",
    "You are your only limit.",
    "The pain you feel today will be the strength you feel tomorrow.",
    "Your future self will thank you.",
    "Consistency is the mother of mastery.",
    "Every rep counts, every day matters.",
    "Discipline is choosing between what you want now and what you want most.",
    "The hardest part is showing up.",
]


# (patterns, category, base_confidence, response)
_KNOWLEDGE_TABLE = [
    # Safety
    (
        ["chest pain", "heart attack", "shortness of breath"],
        Category.SAFETY,
        0.95,
        """⚠️ **IMPORTANT SAFETY ALERT** ⚠️

**Stop exercising immediately.**
🚨 Chest pain, severe shortness of breath or feeling faint can be signs of a medical emergency.
🏥 If symptoms are severe or do not settle within a few minutes, call your local emergency number.
📞 For anything recurring, see your doctor before your next session.

No fitness goal is worth risking your health. Once a medical professional clears you, I'll help you get back to training safely. 💙""",
    ),
    (
        ["sharp pain", "injury", "hurt"],
        Category.SAFETY,
        0.9,
        """🛡️ **Pain & Injury Check** 🛡️

**Stop the exercise that caused it.** Sharp, sudden or worsening pain is your body's warning signal.

**Right now:**
• Rest the area and avoid loading it
• Ice for 15-20 minutes if there is swelling
• Do not "push through" sharp or joint pain

**See a professional if:**
• Pain persists beyond a few days
• There is swelling, numbness or tingling
• You cannot bear weight or move the joint normally

Discomfort from effort is normal. Pain is not. Your safety comes first. 💙""",
    ),

    # Exercise
    (
        ["squat", "squats", "squatting", "proper squat"],
        Category.EXERCISE,
        0.95,
        """🏋️ **Squat Form Guide**

**Setup:**
• Feet shoulder-width apart, toes slightly turned out (15-30°)
• Chest up, core braced

**Movement:**
• Push your hips back as if sitting into a chair
• Keep knees tracking over your toes
• Lower until thighs are about parallel to the floor
• Drive through your heels to stand back up

**Common Mistakes:**
❌ Knees caving inward
❌ Leaning too far forward
❌ Heels lifting off the ground

**Tip:** Master bodyweight squats before adding load.""",
    ),
    (
        ["pushup", "push-up", "push up", "pushups"],
        Category.EXERCISE,
        0.95,
        """💪 **Push-Up Form Guide**

**Setup:**
• Plank position, hands slightly wider than shoulders
• Straight line from head to heels

**Movement:**
• Lower until your chest nearly touches the floor
• Elbows at roughly 45° to your body
• Press back up while keeping your core tight

**Progressions:**
📈 Wall → Incline → Knee → Full push-ups
📈 Diamond → Archer → One-arm push-ups

**Common Mistakes:**
❌ Sagging hips
❌ Elbows flaring wide
❌ Partial range of motion""",
    ),
    (
        ["deadlift", "deadlifts", "hip hinge"],
        Category.EXERCISE,
        0.9,
        """🏋️ **Deadlift Form Guide**

**Setup:**
• Feet hip-width apart, bar over mid-foot
• Hinge at the hips, grip just outside your legs
• Chest up, shoulders back, neutral spine

**Movement:**
• Drive through your heels, extending hips and knees together
• Keep the bar close to your body the whole way
• Stand tall at the top without leaning back

**Common Mistakes:**
❌ Rounding the back
❌ Bar drifting away from the body
❌ Pulling with the arms

**Tip:** Learn the hip hinge with light weight first.""",
    ),
    (
        ["plank", "planks", "core hold"],
        Category.EXERCISE,
        0.9,
        """🧱 **Plank Guide**

• Forearms under shoulders, body in a straight line
• Squeeze glutes and brace your core
• Breathe normally throughout the hold

**Build up:** start with 3 × 15-20 seconds and add 5 seconds per session.

**Common Mistakes:**
❌ Hips sagging or piking up
❌ Holding your breath""",
    ),
    (
        ["pull-up", "pullup", "pull up", "chin-up"],
        Category.EXERCISE,
        0.9,
        """🧗 **Pull-Up Guide**

• Hang with palms facing away, hands shoulder-width apart
• Pull until your chin clears the bar
• Lower under control to full arm extension

**Can't do one yet?** Start with dead hangs, negatives (slow lowering) and band-assisted reps.

**Common Mistakes:**
❌ Swinging for momentum
❌ Half reps""",
    ),
    (
        ["proper form", "good form", "technique"],
        Category.EXERCISE,
        0.85,
        """🎯 **Universal Form Principles**

✅ **Control** - move with intention, not momentum
✅ **Range of motion** - use the full range you can own
✅ **Breathing** - never hold your breath through a set
✅ **Neutral spine** - protect your back in every lift
✅ **Core engagement** - a stable core means safer movement

Which exercise would you like me to break down?""",
    ),
    (
        ["how many sets", "how many reps", "sets and reps"],
        Category.EXERCISE,
        0.85,
        """🔢 **Sets & Reps Guide**

• **Strength:** 3-5 sets of 3-6 reps, longer rest (2-3 min)
• **Muscle growth:** 3-4 sets of 8-12 reps, 60-90 s rest
• **Endurance:** 2-3 sets of 15-20+ reps, short rest

Beginners do well with 2-3 sets of 8-12 reps on each exercise.""",
    ),

    # Nutrition
    (
        ["nutrition", "what to eat", "diet", "pre workout food", "post workout"],
        Category.NUTRITION,
        0.85,
        """🥗 **Nutrition Essentials**

**Pre-workout (30-60 min before):**
• Banana with nut butter
• Oatmeal with berries

**Post-workout (within 60 min):**
• Protein shake with fruit
• Chicken with sweet potato

**Daily habits:**
💧 Stay hydrated
🥩 Protein with every meal
🥬 Half your plate vegetables
🌾 Time carbs around training

Consistency matters more than perfection!""",
    ),
    (
        ["protein", "protein intake", "how much protein"],
        Category.NUTRITION,
        0.9,
        """🥩 **Protein Guide**

**Daily target:** 1.6-2.2 g per kg of bodyweight for muscle building and recovery.

**Best sources:** lean meats, fish, eggs, dairy, legumes, protein powder.

**Timing:** spread it across 3-5 meals, with a serving after training.""",
    ),
    (
        ["carbs", "carbohydrates", "carb"],
        Category.NUTRITION,
        0.85,
        """🍞 **Carbohydrate Guide**

Carbs are your main training fuel.

• **Amount:** 3-7 g per kg of bodyweight depending on activity
• **Sources:** oats, rice, potatoes, fruit, whole grains
• **Timing:** before and after workouts for energy and glycogen refill

Choose complex carbs over simple sugars for steady energy.""",
    ),
    (
        ["water", "hydration", "hydrated"],
        Category.NUTRITION,
        0.85,
        """💧 **Hydration Guide**

• **Baseline:** roughly 30-35 ml per kg of bodyweight per day
• **Training:** add 400-800 ml per hour of exercise
• **Check:** pale yellow urine means you are well hydrated

For long or sweaty sessions, add electrolytes (sodium, potassium).""",
    ),
    (
        ["supplement", "supplements", "creatine"],
        Category.NUTRITION,
        0.8,
        """💊 **Supplement Guidance**

**Evidence-based:**
• **Creatine monohydrate** - 3-5 g daily, any time
• **Protein powder** - convenient way to hit protein targets
• **Vitamin D** - if you get little sun

**Skip:** fat burners, testosterone boosters, detox teas.

Supplements supplement a good diet, they don't replace it.""",
    ),

    # Motivation
    (
        ["motivation", "motivated", "give up", "quit", "discouraged"],
        Category.MOTIVATION,
        0.9,
        """🔥 **Motivation Boost**

**Remember why you started:**
💪 You're stronger than you think
🎯 Every workout is progress, however small
🏆 Consistency beats perfection

**When motivation fades, discipline carries you:**
📅 Schedule workouts like appointments
📝 Track your progress
👥 Find an accountability partner

**Quick hack:** commit to just 5 minutes. Starting is the hardest part.

You've got this! 💪""",
    ),
    (
        ["plateau", "stuck", "no progress"],
        Category.MOTIVATION,
        0.85,
        """📈 **Breaking a Plateau**

A plateau means your body adapted. That's a sign of progress!

• Change one variable: load, reps, tempo or rest
• Check sleep and recovery
• Make sure you're eating enough protein
• Take a deload week if you've been training hard for 8+ weeks

Plateaus aren't roadblocks, they're launching pads. 🚀""",
    ),

    # Planning
    (
        ["workout plan", "beginner workout", "start working out", "exercise routine"],
        Category.PLANNING,
        0.9,
        """🌟 **Beginner Workout Plan**

**Schedule:** 3 days per week with a rest day between sessions

**Workout A:**
• Bodyweight squats: 2 × 8-12
• Push-ups (modified if needed): 2 × 5-10
• Plank: 2 × 15-30 s
• Walking: 10-15 min

**Workout B:**
• Glute bridges: 2 × 10-15
• Incline push-ups: 2 × 8-12
• Dead bug: 2 × 5 each side
• Step-ups: 10-15 min

**Golden rules:** quality over quantity, progress gradually, celebrate small wins!""",
    ),
    (
        ["how often", "rest day", "rest days", "training frequency"],
        Category.PLANNING,
        0.85,
        """📅 **Training Frequency**

• **Beginners:** 3 full-body sessions per week
• **Intermediate:** 4-5 days with an upper/lower or push/pull/legs split
• **Advanced:** 5-6 days with planned periodization

Give each muscle group 48 hours before training it hard again, and take at least one full rest day per week.""",
    ),

    # General
    (
        ["hello", "hey coach", "what can you do"],
        Category.GENERAL,
        0.7,
        """Hi there! I'm your fitness coach! 🤖💪

I can help with:
🏋️ **Exercise** - form, technique and workouts
🥗 **Nutrition** - macros, meal timing, supplements
🔥 **Motivation** - staying on track
🛡️ **Safety** - training without getting hurt
📋 **Planning** - structured routines

What would you like to work on today?""",
    ),
]


def build_default_entries() -> List[KnowledgeEntry]:
    """
    Build fresh KnowledgeEntry objects from the static table.

    Returns:
        New entries with zeroed usage counters, in table order.
    """
    return [
        KnowledgeEntry(
            patterns=list(patterns),
            response=response,
            category=category,
            base_confidence=confidence
        )
        for patterns, category, confidence, response in _KNOWLEDGE_TABLE
    ]
