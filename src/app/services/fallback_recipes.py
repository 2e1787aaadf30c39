# src/app/services/fallback_recipes.py
"""
Pre-authored recipes served when the text provider is out of quota.
"""
from __future__ import annotations

import copy
import random

from src.app.domain.models import Difficulty, GeneratedRecipe

MIN_IDEA_LENGTH_FOR_TITLE = 5
META_TITLE_LENGTH = 55

FALLBACK_RECIPES: tuple[GeneratedRecipe, ...] = (
    GeneratedRecipe(
        title="Bolo de Chocolate Cremoso",
        description="Bolo fofinho de chocolate com cobertura cremosa, perfeito para qualquer ocasião especial.",
        ingredients=[
            "2 xícaras de farinha de trigo",
            "1 xícara de açúcar",
            "1/2 xícara de chocolate em pó",
            "3 ovos",
            "1 xícara de leite",
            "1/2 xícara de óleo",
            "1 colher de sopa de fermento",
            "1 pitada de sal",
        ],
        instructions=[
            "Pré-aqueça o forno a 180°C e unte uma forma com manteiga e farinha",
            "Em uma tigela, misture os ingredientes secos: farinha, açúcar, chocolate em pó e sal",
            "Em outra tigela, bata os ovos, adicione o leite e o óleo",
            "Misture os ingredientes líquidos aos secos até formar uma massa homogênea",
            "Adicione o fermento e misture delicadamente",
            "Despeje a massa na forma preparada",
            "Asse por 35-40 minutos ou até que um palito saia limpo",
            "Deixe esfriar antes de desenformar",
        ],
        tips=[
            "Não abra o forno nos primeiros 20 minutos de cozimento",
            "Para verificar se está pronto, espete um palito no centro",
            "Pode ser servido com chantilly ou sorvete",
            "Guarde em recipiente fechado por até 3 dias",
        ],
        cook_time=45,
        difficulty=Difficulty.EASY,
        servings=8,
        meta_title="Bolo de Chocolate Caseiro - Receita Fácil e Deliciosa",
        meta_description="Aprenda a fazer um bolo de chocolate caseiro fofinho e saboroso. Receita simples com ingredientes básicos.",
        meta_keywords="bolo de chocolate, receita caseira, sobremesa, bolo fácil",
        hashtags=["bolo", "chocolate", "sobremesa", "caseiro", "fácil", "doce", "festa", "família", "cremoso", "fofinho"],
        category="Doces",
        subcategory="Bolos",
    ),
    GeneratedRecipe(
        title="Risotto de Camarão Cremoso",
        description="Risotto italiano autêntico com camarões frescos e temperos especiais, cremoso e saboroso.",
        ingredients=[
            "300g de arroz arbóreo",
            "500g de camarão limpo",
            "1 litro de caldo de peixe",
            "1 cebola média picada",
            "3 dentes de alho",
            "1/2 xícara de vinho branco",
            "50g de manteiga",
            "Queijo parmesão ralado",
            "Salsinha fresca picada",
        ],
        instructions=[
            "Tempere os camarões com sal, pimenta e alho",
            "Aqueça o caldo de peixe em uma panela separada",
            "Refogue a cebola na manteiga até dourar",
            "Adicione o arroz e refogue por 2 minutos",
            "Despeje o vinho branco e mexa até evaporar",
            "Adicione o caldo quente, uma concha por vez",
            "Mexa constantemente por cerca de 18 minutos",
            "Nos últimos minutos, adicione os camarões",
            "Finalize com parmesão e salsinha",
        ],
        tips=[
            "O segredo é mexer sempre para liberar o amido",
            "O caldo deve estar sempre quente",
            "O ponto ideal é al dente, cremoso mas não empapado",
            "Sirva imediatamente após o preparo",
        ],
        cook_time=35,
        difficulty=Difficulty.MEDIUM,
        servings=4,
        meta_title="Risotto de Camarão - Receita Italiana Autêntica",
        meta_description="Risotto de camarão cremoso e saboroso. Aprenda a técnica italiana para um prato perfeito.",
        meta_keywords="risotto, camarão, culinária italiana, frutos do mar, arroz cremoso",
        hashtags=["risotto", "camarão", "italiano", "cremoso", "frutos do mar", "gourmet", "jantar", "especial", "sofisticado", "delicioso"],
        category="Massas",
        subcategory="Risotto",
    ),
    GeneratedRecipe(
        title="Salada Caesar Completa",
        description="Salada caesar clássica com molho cremoso, croutons crocantes e parmesão fresco.",
        ingredients=[
            "1 pé de alface americana",
            "100g de parmesão em lascas",
            "2 fatias de pão de forma",
            "2 gemas de ovo",
            "3 dentes de alho",
            "6 filés de anchova",
            "Suco de 1 limão",
            "1/4 xícara de azeite",
            "Molho inglês a gosto",
        ],
        instructions=[
            "Lave e seque bem as folhas de alface",
            "Corte o pão em cubos e toste no forno com azeite",
            "No liquidificador, bata gemas, alho, anchovas e limão",
            "Adicione o azeite em fio até formar um molho cremoso",
            "Tempere com molho inglês, sal e pimenta",
            "Monte a salada com alface, molho e croutons",
            "Finalize com lascas de parmesão",
            "Sirva imediatamente",
        ],
        tips=[
            "Use ovos frescos e de boa procedência",
            "O molho pode ser feito com até 2 dias de antecedência",
            "Mantenha os ingredientes bem gelados",
            "Adicione o molho apenas na hora de servir",
        ],
        cook_time=20,
        difficulty=Difficulty.EASY,
        servings=4,
        meta_title="Salada Caesar Clássica - Receita Tradicional",
        meta_description="Salada caesar autêntica com molho cremoso caseiro. Receita tradicional americana.",
        meta_keywords="salada caesar, molho caesar, salada americana, entrada",
        hashtags=["salada", "caesar", "entrada", "americano", "clássico", "molho", "parmesão", "croutons", "fresco", "cremoso"],
        category="Saladas",
        subcategory="Entradas",
    ),
)


def pick_fallback_recipe(idea: str, rng: random.Random | None = None) -> GeneratedRecipe:
    """
    Pick one fallback recipe at random and adapt its title to the idea.

    The returned recipe is a copy; the templates are never mutated.
    """
    chooser = rng or random
    recipe = copy.deepcopy(chooser.choice(FALLBACK_RECIPES))
    idea = (idea or "").strip()
    if len(idea) > MIN_IDEA_LENGTH_FOR_TITLE:
        recipe.title = f"{recipe.title} - Inspirado em {idea}"
        recipe.meta_title = f"{recipe.title[:META_TITLE_LENGTH]}..."
    return recipe
