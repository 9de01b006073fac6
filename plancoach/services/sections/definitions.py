"""Business plan sections known to the conversation engine."""

from typing import Mapping, Optional, Sequence, Tuple

from plancoach.services.document.renderer import (
    CURRENCY,
    NUMBER,
    PERCENT,
    AmountBlock,
    Block,
    BulletListBlock,
    Column,
    FieldGroupBlock,
    NamedValueListBlock,
    NumberedListBlock,
    PercentBlock,
    SectionRenderer,
    TableBlock,
    TextBlock,
)
from plancoach.services.sections.registry import (
    ExtractionMode,
    SectionDefinition,
    SectionRegistry,
)

INLINE_PROMPT = """You are a business planning coach helping the user write the {title} section of their business plan.

Focus on: {focus}

Ask one or two clarifying questions at a time and keep answers practical and specific to the user's business.
Whenever the user has shared concrete information, end your reply with a ```json fenced block containing only
the fields you can fill from the conversation, following the structure given below. Leave out fields you know
nothing about. Do not invent information the user has not given you."""

CONVERSATION_PROMPT = """You are a business planning coach helping the user write the {title} section of their business plan.

Focus on: {focus}

Ask one or two clarifying questions at a time and keep answers practical and specific to the user's business.
Reply conversationally; do not include JSON in your reply."""


def _section(
    key: str,
    title: str,
    path: Sequence[str],
    topic: str,
    focus: str,
    schema: Mapping[str, str],
    blocks: Sequence[Block],
    extraction_mode: ExtractionMode = ExtractionMode.INLINE,
    list_field: Optional[str] = None,
) -> SectionDefinition:
    template = INLINE_PROMPT if extraction_mode is ExtractionMode.INLINE else CONVERSATION_PROMPT
    return SectionDefinition(
        key=key,
        title=title,
        path=tuple(path),
        topic=topic,
        system_prompt=template.format(title=title, focus=focus),
        schema=dict(schema),
        renderer=SectionRenderer(blocks=tuple(blocks), title=title),
        extraction_mode=extraction_mode,
        list_field=list_field,
    )


def _amount_table(field: str, heading: str, name_label: str = "Item", key: str = "amount") -> TableBlock:
    return TableBlock(
        field,
        heading,
        columns=(
            Column("name", name_label),
            Column(key, "Amount", CURRENCY, summable=True),
            Column("description", "Description"),
        ),
    )


# ---------------------------------------------------------------------------
# Company
# ---------------------------------------------------------------------------

VISION_AND_GOALS = _section(
    key="visionAndGoals",
    title="Vision & Goals",
    path=("vision",),
    topic="vision or goals",
    focus="the long-term vision and specific, measurable goals for the first, third and fifth year",
    schema={
        "longTermVision": "The overall long-term vision statement",
        "yearOneGoals": "Array of specific, measurable first-year goals",
        "yearThreeGoals": "Array of specific three-year goals",
        "yearFiveGoals": "Array of specific five-year goals",
        "alignmentExplanation": "How these goals align with the vision",
    },
    blocks=(
        TextBlock("longTermVision", "Long-Term Vision"),
        BulletListBlock("yearOneGoals", "First Year Goals"),
        BulletListBlock("yearThreeGoals", "Three-Year Goals"),
        BulletListBlock("yearFiveGoals", "Five-Year Goals"),
        TextBlock("alignmentExplanation", "Goal Alignment"),
    ),
)

MISSION_STATEMENT = _section(
    key="missionStatement",
    title="Mission Statement",
    path=("missionStatement",),
    topic="mission statement",
    focus="why the business exists, who it serves and the values that guide it",
    schema={
        "missionStatement": "One or two sentence mission statement",
        "purpose": "Why the business exists",
        "vision": "What the business wants the world to look like",
        "coreValues": "Array of core values",
    },
    blocks=(
        TextBlock("missionStatement", "Mission Statement"),
        TextBlock("purpose", "Purpose"),
        TextBlock("vision", "Vision"),
        BulletListBlock("coreValues", "Core Values"),
    ),
    list_field="coreValues",
)

COMPANY_OVERVIEW = _section(
    key="companyOverview",
    title="Company Overview",
    path=("companyOverview",),
    topic="company overview",
    focus="the company's name, story, current stage, business model, core activities and milestones",
    schema={
        "businessName": "Name of the business",
        "foundingStory": "How and why the business was started",
        "currentStage": "Idea, startup, growth, established",
        "businessModel": "How the business makes money",
        "coreActivities": "Array of the main activities",
        "keyMilestones": "Array of milestones reached or planned",
    },
    blocks=(
        TextBlock("businessName", "Business Name"),
        TextBlock("foundingStory", "Founding Story"),
        TextBlock("currentStage", "Current Stage"),
        TextBlock("businessModel", "Business Model"),
        BulletListBlock("coreActivities", "Core Activities"),
        BulletListBlock("keyMilestones", "Key Milestones"),
    ),
)

PRODUCTS_OR_SERVICES = _section(
    key="productsOrServices",
    title="Products & Services",
    path=("products",),
    topic="product description",
    focus="what the business sells, what makes it different and where the offering is going",
    schema={
        "productDescription": "Description of the products or services",
        "uniqueSellingPoints": "Array of unique selling points",
        "competitiveAdvantages": "Array of competitive advantages",
        "pricingStrategy": "How the offering is priced",
        "futureProductPlans": "Planned products or improvements",
    },
    blocks=(
        TextBlock("productDescription", "Product Description"),
        BulletListBlock("uniqueSellingPoints", "Unique Selling Points"),
        BulletListBlock("competitiveAdvantages", "Competitive Advantages"),
        TextBlock("pricingStrategy", "Pricing Strategy"),
        TextBlock("futureProductPlans", "Future Product Plans"),
    ),
)

DISTRIBUTION_STRATEGY = _section(
    key="distributionStrategy",
    title="Distribution Strategy",
    path=("distribution",),
    topic="distribution strategy",
    focus="how products reach customers: channels, logistics, partners and their costs",
    schema={
        "primaryChannel": "Main distribution channel",
        "distributionChannels": "Array of all channels used",
        "channelStrategy": "How the channels work together",
        "logisticsApproach": "Shipping, fulfilment and delivery",
        "partnershipStrategy": "Distribution partners",
        "costStructure": "Costs of distribution",
        "innovativeApproaches": "Array of new or unusual approaches",
    },
    blocks=(
        TextBlock("primaryChannel", "Primary Channel"),
        BulletListBlock("distributionChannels", "Distribution Channels"),
        TextBlock("channelStrategy", "Channel Strategy"),
        TextBlock("logisticsApproach", "Logistics"),
        TextBlock("partnershipStrategy", "Partnerships"),
        TextBlock("costStructure", "Cost Structure"),
        BulletListBlock("innovativeApproaches", "Innovative Approaches"),
    ),
)

LEGAL_STRUCTURE = _section(
    key="legalStructure",
    title="Legal Structure",
    path=("legalStructure",),
    topic="legal structure",
    focus="the legal entity type, ownership, legal requirements and tax implications",
    schema={
        "structureType": "LLC, corporation, sole proprietorship, partnership",
        "rationale": "Why this structure was chosen",
        "ownershipDetails": "Who owns what",
        "legalRequirements": "Array of licenses, permits and registrations",
        "taxImplications": "Tax consequences of the structure",
        "futurePlans": "Planned changes to the structure",
    },
    blocks=(
        TextBlock("structureType", "Structure Type"),
        TextBlock("rationale", "Rationale"),
        TextBlock("ownershipDetails", "Ownership"),
        BulletListBlock("legalRequirements", "Legal Requirements"),
        TextBlock("taxImplications", "Tax Implications"),
        TextBlock("futurePlans", "Future Plans"),
    ),
)

LOCATION_FACILITIES = _section(
    key="locationFacilities",
    title="Location & Facilities",
    path=("locationFacilities",),
    topic="location plan",
    focus="where the business operates, the facilities it needs and the regulations that apply",
    schema={
        "locationType": "Retail, office, home-based, online, warehouse",
        "locationDetails": "Address or area and its characteristics",
        "locationRationale": "Why this location",
        "facilities": "Space, equipment and layout",
        "regulatoryRequirements": "Zoning, permits and inspections",
        "expansionPlans": "Future location plans",
    },
    blocks=(
        TextBlock("locationType", "Location Type"),
        TextBlock("locationDetails", "Location Details"),
        TextBlock("locationRationale", "Why This Location"),
        TextBlock("facilities", "Facilities"),
        TextBlock("regulatoryRequirements", "Regulatory Requirements"),
        TextBlock("expansionPlans", "Expansion Plans"),
    ),
)

EXECUTIVE_SUMMARY = _section(
    key="executiveSummary",
    title="Executive Summary",
    path=("executiveSummary",),
    topic="executive summary",
    focus="a short overview of the whole plan for investors and partners",
    schema={
        "overview": "One paragraph overview of the business",
        "businessConcept": "The core business idea",
        "targetMarket": "Who the customers are",
        "competitiveAdvantage": "Why the business will win",
        "financialHighlights": "Key financial figures",
        "fundingRequest": "Amount and purpose of funding sought",
        "keyMilestones": "Array of upcoming milestones",
    },
    blocks=(
        TextBlock("overview", "Overview"),
        TextBlock("businessConcept", "Business Concept"),
        TextBlock("targetMarket", "Target Market"),
        TextBlock("competitiveAdvantage", "Competitive Advantage"),
        TextBlock("financialHighlights", "Financial Highlights"),
        TextBlock("fundingRequest", "Funding Request"),
        BulletListBlock("keyMilestones", "Key Milestones"),
    ),
)

# ---------------------------------------------------------------------------
# Marketing plan
# ---------------------------------------------------------------------------

MARKETING_POSITIONING = _section(
    key="marketingPositioning",
    title="Market Positioning",
    path=("marketingPlan", "positioning"),
    topic="positioning",
    focus="target audience, value proposition and how the brand stands apart from competitors",
    schema={
        "positioningStatement": "One sentence positioning statement",
        "targetAudience": "Who the marketing is aimed at",
        "valueProposition": "The main benefit customers get",
        "competitiveDifferentiators": "Array of differentiators",
        "brandPersonality": "Tone and personality of the brand",
    },
    blocks=(
        TextBlock("positioningStatement", "Positioning Statement"),
        TextBlock("targetAudience", "Target Audience"),
        TextBlock("valueProposition", "Value Proposition"),
        BulletListBlock("competitiveDifferentiators", "Competitive Differentiators"),
        TextBlock("brandPersonality", "Brand Personality"),
    ),
)

MARKETING_PRICING = _section(
    key="marketingPricing",
    title="Pricing Strategy",
    path=("marketingPlan", "pricing"),
    topic="pricing strategy",
    focus="price points, the pricing model and how prices compare with competitors",
    schema={
        "pricingModel": "Cost-plus, value-based, subscription, tiered",
        "pricePoints": "Array of {name, price, description}",
        "discountPolicy": "Discounts and promotions",
        "competitorComparison": "How prices compare with competitors",
        "pricingRationale": "Why these prices",
    },
    blocks=(
        TextBlock("pricingModel", "Pricing Model"),
        TableBlock(
            "pricePoints",
            "Price Points",
            columns=(
                Column("name", "Offering"),
                Column("price", "Price", CURRENCY),
                Column("description", "Description"),
            ),
        ),
        TextBlock("discountPolicy", "Discount Policy"),
        TextBlock("competitorComparison", "Competitor Comparison"),
        TextBlock("pricingRationale", "Rationale"),
    ),
    list_field="pricePoints",
)

MARKETING_PROMOTIONAL = _section(
    key="marketingPromotional",
    title="Promotional Strategy",
    path=("marketingPlan", "promotional"),
    topic="promotion strategy",
    focus="promotional channels, campaigns, budget and how success is measured",
    schema={
        "promotionalChannels": "Array of channels (social, email, events...)",
        "campaigns": "Array of {name, description}",
        "budget": "Monthly promotional budget in dollars",
        "timeline": "When campaigns run",
        "successMetrics": "Array of metrics used to judge promotions",
    },
    blocks=(
        BulletListBlock("promotionalChannels", "Promotional Channels"),
        NumberedListBlock("campaigns", "Campaigns"),
        AmountBlock("budget", "Budget"),
        TextBlock("timeline", "Timeline"),
        BulletListBlock("successMetrics", "Success Metrics"),
    ),
)

MARKETING_SALES = _section(
    key="marketingSales",
    title="Sales Strategy",
    path=("marketingPlan", "sales"),
    topic="sales strategy",
    focus="the sales process, channels, targets, team and customer retention",
    schema={
        "salesProcess": "Steps from lead to closed sale",
        "salesChannels": "Array of sales channels",
        "salesTargets": "Array of {name, value, description} targets",
        "salesTeam": "Who sells and how they are organised",
        "customerRetention": "How customers are kept",
    },
    blocks=(
        TextBlock("salesProcess", "Sales Process"),
        BulletListBlock("salesChannels", "Sales Channels"),
        NamedValueListBlock("salesTargets", "Sales Targets"),
        TextBlock("salesTeam", "Sales Team"),
        TextBlock("customerRetention", "Customer Retention"),
    ),
)

# ---------------------------------------------------------------------------
# Operations (conversational reply, then a separate structuring turn)
# ---------------------------------------------------------------------------

OPERATIONS_PRODUCTION = _section(
    key="operationsProduction",
    title="Production Process",
    path=("operations", "production"),
    topic="production process",
    focus="how the product is made or the service delivered, its timeline, capacity and costs",
    schema={
        "processOverview": "Overview of the production or delivery process",
        "processSteps": "Array of process steps in order",
        "productionTimeline": "How long production takes",
        "capacityManagement": "How capacity is planned and scaled",
        "outsourcingStrategy": "What is outsourced",
        "equipmentAndTechnology": "Equipment and tools used",
        "productionCosts": "Main production costs",
    },
    blocks=(
        TextBlock("processOverview", "Process Overview"),
        NumberedListBlock("processSteps", "Process Steps"),
        TextBlock("productionTimeline", "Production Timeline"),
        TextBlock("capacityManagement", "Capacity Management"),
        TextBlock("outsourcingStrategy", "Outsourcing Strategy"),
        TextBlock("equipmentAndTechnology", "Equipment & Technology"),
        TextBlock("productionCosts", "Production Costs"),
    ),
    extraction_mode=ExtractionMode.STRUCTURING_TURN,
)

OPERATIONS_QUALITY_CONTROL = _section(
    key="operationsQualityControl",
    title="Quality Control",
    path=("operations", "qualityControl"),
    topic="quality control plan",
    focus="quality standards, procedures, testing, metrics and continuous improvement",
    schema={
        "qualityApproach": "Overall approach to quality",
        "qualityStandards": "Standards the business holds itself to",
        "qualityProcedures": "Checks performed and when",
        "testingMethods": "How products or services are tested",
        "qualityMetrics": "Array of metrics tracked",
        "feedbackMechanisms": "How customer feedback is collected",
        "continuousImprovement": "How quality improves over time",
    },
    blocks=(
        TextBlock("qualityApproach", "Quality Approach"),
        TextBlock("qualityStandards", "Quality Standards"),
        TextBlock("qualityProcedures", "Quality Procedures"),
        TextBlock("testingMethods", "Testing Methods"),
        BulletListBlock("qualityMetrics", "Quality Metrics"),
        TextBlock("feedbackMechanisms", "Feedback Mechanisms"),
        TextBlock("continuousImprovement", "Continuous Improvement"),
    ),
    extraction_mode=ExtractionMode.STRUCTURING_TURN,
)

OPERATIONS_INVENTORY = _section(
    key="operationsInventory",
    title="Inventory Management",
    path=("operations", "inventory"),
    topic="inventory plan",
    focus="how stock is stored, tracked, reordered and sourced",
    schema={
        "inventoryApproach": "Just-in-time, bulk, drop-shipping",
        "storageSolutions": "Where and how inventory is stored",
        "trackingSystems": "Tools used to track inventory",
        "reorderPolicies": "When and how stock is reordered",
        "supplierManagement": "How suppliers are chosen and managed",
        "seasonalConsiderations": "Seasonal demand changes",
        "inventoryTurnover": "Target inventory turnover",
    },
    blocks=(
        TextBlock("inventoryApproach", "Inventory Approach"),
        TextBlock("storageSolutions", "Storage Solutions"),
        TextBlock("trackingSystems", "Tracking Systems"),
        TextBlock("reorderPolicies", "Reorder Policies"),
        TextBlock("supplierManagement", "Supplier Management"),
        TextBlock("seasonalConsiderations", "Seasonal Considerations"),
        TextBlock("inventoryTurnover", "Inventory Turnover"),
    ),
    extraction_mode=ExtractionMode.STRUCTURING_TURN,
)

OPERATIONS_KPIS = _section(
    key="operationsKpis",
    title="Key Performance Indicators (KPIs)",
    path=("operations", "kpis"),
    topic="KPIs",
    focus="the indicators used to track financial, operational, customer, employee and marketing performance",
    schema={
        "financialKPIs": "Array of financial KPIs",
        "operationalKPIs": "Array of operational KPIs",
        "customerKPIs": "Array of customer KPIs",
        "employeeKPIs": "Array of employee KPIs",
        "marketingKPIs": "Array of marketing KPIs",
        "measurementFrequency": "How often KPIs are measured",
        "reportingMethods": "How KPIs are reported",
        "benchmarks": "Industry benchmarks",
        "responsibleParties": "Who owns each KPI",
        "improvementProcess": "What happens when a KPI is off target",
    },
    blocks=(
        BulletListBlock("financialKPIs", "Financial KPIs"),
        BulletListBlock("operationalKPIs", "Operational KPIs"),
        BulletListBlock("customerKPIs", "Customer KPIs"),
        BulletListBlock("employeeKPIs", "Employee KPIs"),
        BulletListBlock("marketingKPIs", "Marketing KPIs"),
        TextBlock("measurementFrequency", "Measurement Frequency"),
        TextBlock("reportingMethods", "Reporting Methods"),
        TextBlock("benchmarks", "Industry Benchmarks"),
        TextBlock("responsibleParties", "Responsible Parties"),
        TextBlock("improvementProcess", "Improvement Process"),
    ),
    extraction_mode=ExtractionMode.STRUCTURING_TURN,
)

OPERATIONS_TECHNOLOGY = _section(
    key="operationsTechnology",
    title="Technology & Systems",
    path=("operations", "technology"),
    topic="technology plan",
    focus="software, hardware, integrations, data, security and the technology budget",
    schema={
        "softwareSystems": "Array of software used",
        "hardwareRequirements": "Hardware needed",
        "integrations": "How systems connect",
        "dataManagement": "How data is stored and backed up",
        "cybersecurity": "Security measures",
        "techSupport": "Who supports the systems",
        "trainingNeeds": "Staff training required",
        "futureUpgrades": "Planned upgrades",
        "techBudget": "Annual technology budget in dollars",
        "disasterRecovery": "Recovery plan for outages",
    },
    blocks=(
        BulletListBlock("softwareSystems", "Software Systems"),
        TextBlock("hardwareRequirements", "Hardware Requirements"),
        TextBlock("integrations", "Integrations"),
        TextBlock("dataManagement", "Data Management"),
        TextBlock("cybersecurity", "Cybersecurity"),
        TextBlock("techSupport", "Technical Support"),
        TextBlock("trainingNeeds", "Training Needs"),
        TextBlock("futureUpgrades", "Future Upgrades"),
        AmountBlock("techBudget", "Technology Budget"),
        TextBlock("disasterRecovery", "Disaster Recovery"),
    ),
    extraction_mode=ExtractionMode.STRUCTURING_TURN,
)

# ---------------------------------------------------------------------------
# Financial plan
# ---------------------------------------------------------------------------

STARTUP_COSTS = _section(
    key="startupCosts",
    title="Startup Costs",
    path=("financialPlan", "startupCosts"),
    topic="startup cost estimate",
    focus="one-time costs, monthly expenses, funding sources and the break-even timeframe",
    schema={
        "oneTimeCosts": "Array of {name, amount, description}",
        "monthlyExpenses": "Array of {name, amount, description}",
        "fundingSources": "Array of {name, amount, description}",
        "totalStartupCost": "Total startup cost in dollars",
        "breakEvenTimeframe": "When the business expects to break even",
        "additionalNotes": "Anything else worth noting",
    },
    blocks=(
        _amount_table("oneTimeCosts", "One-Time Costs"),
        _amount_table("monthlyExpenses", "Monthly Expenses"),
        _amount_table("fundingSources", "Funding Sources", name_label="Source"),
        AmountBlock("totalStartupCost", "Total Startup Cost"),
        TextBlock("breakEvenTimeframe", "Break-Even Timeframe"),
        TextBlock("additionalNotes", "Additional Notes"),
    ),
)

REVENUE_PROJECTIONS = _section(
    key="revenueProjections",
    title="Revenue Projections",
    path=("financialPlan", "revenueProjections"),
    topic="revenue projection",
    focus="revenue streams, the sales forecast, growth assumptions and best and worst cases",
    schema={
        "revenueStreams": "Array of {name, projectedAmount, growthRate, description}",
        "salesForecast": "Expected sales over the next periods",
        "annualGrowthRate": "Expected yearly revenue growth in percent",
        "growthAssumptions": "What the growth depends on",
        "seasonalityFactors": "Seasonal effects on revenue",
        "marketSizeEstimates": "Size of the addressable market",
        "pricingStrategy": "How pricing affects revenue",
        "bestCaseScenario": "Optimistic projection",
        "worstCaseScenario": "Pessimistic projection",
    },
    blocks=(
        TableBlock(
            "revenueStreams",
            "Revenue Streams",
            columns=(
                Column("name", "Stream"),
                Column("projectedAmount", "Projected Amount", CURRENCY, summable=True),
                Column("growthRate", "Growth Rate", PERCENT),
                Column("description", "Description"),
            ),
        ),
        TextBlock("salesForecast", "Sales Forecast"),
        PercentBlock("annualGrowthRate", "Annual Growth Rate"),
        TextBlock("growthAssumptions", "Growth Assumptions"),
        TextBlock("seasonalityFactors", "Seasonality"),
        TextBlock("marketSizeEstimates", "Market Size"),
        TextBlock("pricingStrategy", "Pricing Strategy"),
        TextBlock("bestCaseScenario", "Best Case Scenario"),
        TextBlock("worstCaseScenario", "Worst Case Scenario"),
    ),
    list_field="revenueStreams",
)

EXPENSE_PROJECTIONS = _section(
    key="expenseProjections",
    title="Expense Projections",
    path=("financialPlan", "expenseProjections"),
    topic="expense projection",
    focus="fixed, variable and one-time expenses and how costs are kept under control",
    schema={
        "fixedExpenses": "Array of {category, monthlyAmount, annualAmount, description}",
        "variableExpenses": "Array of {category, percentOfRevenue, estimatedAmount, description}",
        "oneTimeExpenses": "Array of {description, amount, expectedDate}",
        "expenseForecast": "How expenses develop over time",
        "largestExpenseCategories": "Array of the biggest expense categories",
        "costSavingStrategies": "Array of cost saving strategies",
        "expenseManagementApproach": "How spending is controlled",
        "growthAssumptions": "How expenses grow with the business",
    },
    blocks=(
        TableBlock(
            "fixedExpenses",
            "Fixed Expenses",
            columns=(
                Column("category", "Category"),
                Column("monthlyAmount", "Monthly", CURRENCY, summable=True),
                Column("annualAmount", "Annual", CURRENCY, summable=True),
                Column("description", "Description"),
            ),
        ),
        TableBlock(
            "variableExpenses",
            "Variable Expenses",
            columns=(
                Column("category", "Category"),
                Column("percentOfRevenue", "% of Revenue", PERCENT),
                Column("estimatedAmount", "Estimated Amount", CURRENCY, summable=True),
                Column("description", "Description"),
            ),
        ),
        TableBlock(
            "oneTimeExpenses",
            "One-Time Expenses",
            columns=(
                Column("description", "Expense"),
                Column("amount", "Amount", CURRENCY, summable=True),
                Column("expectedDate", "Expected Date"),
            ),
        ),
        TextBlock("expenseForecast", "Expense Forecast"),
        BulletListBlock("largestExpenseCategories", "Largest Expense Categories"),
        BulletListBlock("costSavingStrategies", "Cost Saving Strategies"),
        TextBlock("expenseManagementApproach", "Expense Management"),
        TextBlock("growthAssumptions", "Growth Assumptions"),
    ),
)

BREAK_EVEN_ANALYSIS = _section(
    key="breakEvenAnalysis",
    title="Break-Even Analysis",
    path=("financialPlan", "breakEvenAnalysis"),
    topic="break-even analysis",
    focus="fixed and variable costs, unit price, contribution margin and when the business breaks even",
    schema={
        "fixedCosts": "{amount, description} monthly fixed costs",
        "variableCosts": "{amount, description} variable cost per unit",
        "unitPrice": "Price per unit in dollars",
        "contributionMargin": "Unit price minus variable cost per unit",
        "breakEvenPoint": "{units, revenue}",
        "timeToBreakEven": "How long until break-even",
        "assumptions": "Array of assumptions",
        "sensitivityAnalysis": "How the break-even point reacts to changes",
    },
    blocks=(
        AmountBlock("fixedCosts", "Fixed Costs"),
        AmountBlock("variableCosts", "Variable Costs"),
        AmountBlock("unitPrice", "Unit Price"),
        AmountBlock("contributionMargin", "Contribution Margin"),
        FieldGroupBlock(
            "breakEvenPoint",
            "Break-Even Point",
            parts=(
                Column("units", "Units", NUMBER),
                Column("revenue", "Revenue", CURRENCY),
            ),
        ),
        TextBlock("timeToBreakEven", "Time to Break-Even"),
        BulletListBlock("assumptions", "Assumptions"),
        TextBlock("sensitivityAnalysis", "Sensitivity Analysis"),
    ),
)

FINANCIAL_METRICS = _section(
    key="financialMetrics",
    title="Financial Metrics",
    path=("financialPlan", "financialMetrics"),
    topic="financial metrics",
    focus="profitability, liquidity, efficiency, growth and customer metrics and the financial goals behind them",
    schema={
        "profitabilityRatios": "Array of {name, value, description}",
        "liquidityRatios": "Array of {name, value, description}",
        "efficiencyRatios": "Array of {name, value, description}",
        "growthMetrics": "Array of {name, value, description}",
        "customerMetrics": "Array of {name, value, description}",
        "keyPerformanceIndicators": "Array of {name, value, description}",
        "financialGoals": "Financial goals these metrics support",
        "industryBenchmarks": "Comparable industry figures",
    },
    blocks=(
        NamedValueListBlock("profitabilityRatios", "Profitability Ratios"),
        NamedValueListBlock("liquidityRatios", "Liquidity Ratios"),
        NamedValueListBlock("efficiencyRatios", "Efficiency Ratios"),
        NamedValueListBlock("growthMetrics", "Growth Metrics"),
        NamedValueListBlock("customerMetrics", "Customer Metrics"),
        NamedValueListBlock("keyPerformanceIndicators", "Key Performance Indicators"),
        TextBlock("financialGoals", "Financial Goals"),
        TextBlock("industryBenchmarks", "Industry Benchmarks"),
    ),
)

FUNDING_REQUIREMENTS = _section(
    key="fundingRequirements",
    title="Funding Requirements",
    path=("financialPlan", "fundingRequirements"),
    topic="funding plan",
    focus="how much funding is needed, where it comes from, how it is used and the return for investors",
    schema={
        "totalFundingNeeded": "Total funding needed in dollars",
        "fundingSources": "Array of {source, amount, terms}",
        "fundingUseBreakdown": "Array of {category, amount, description}",
        "fundingTimeline": "When the funds are needed",
        "expectedROI": "Expected return for investors",
        "exitStrategy": "How investors get their money back",
        "risks": "Array of risks",
        "contingencyPlans": "What happens if funding falls short",
    },
    blocks=(
        AmountBlock("totalFundingNeeded", "Total Funding Needed"),
        TableBlock(
            "fundingSources",
            "Funding Sources",
            columns=(
                Column("source", "Source"),
                Column("amount", "Amount", CURRENCY, summable=True),
                Column("terms", "Terms"),
            ),
        ),
        TableBlock(
            "fundingUseBreakdown",
            "Use of Funds",
            columns=(
                Column("category", "Category"),
                Column("amount", "Amount", CURRENCY, summable=True),
                Column("description", "Description"),
            ),
        ),
        TextBlock("fundingTimeline", "Funding Timeline"),
        TextBlock("expectedROI", "Expected ROI"),
        TextBlock("exitStrategy", "Exit Strategy"),
        BulletListBlock("risks", "Risks"),
        TextBlock("contingencyPlans", "Contingency Plans"),
    ),
)

DEFAULT_SECTIONS: Tuple[SectionDefinition, ...] = (
    EXECUTIVE_SUMMARY,
    VISION_AND_GOALS,
    MISSION_STATEMENT,
    COMPANY_OVERVIEW,
    PRODUCTS_OR_SERVICES,
    DISTRIBUTION_STRATEGY,
    LEGAL_STRUCTURE,
    LOCATION_FACILITIES,
    MARKETING_POSITIONING,
    MARKETING_PRICING,
    MARKETING_PROMOTIONAL,
    MARKETING_SALES,
    OPERATIONS_PRODUCTION,
    OPERATIONS_QUALITY_CONTROL,
    OPERATIONS_INVENTORY,
    OPERATIONS_KPIS,
    OPERATIONS_TECHNOLOGY,
    STARTUP_COSTS,
    REVENUE_PROJECTIONS,
    EXPENSE_PROJECTIONS,
    BREAK_EVEN_ANALYSIS,
    FINANCIAL_METRICS,
    FUNDING_REQUIREMENTS,
)


def build_default_registry() -> SectionRegistry:
    return SectionRegistry(DEFAULT_SECTIONS)
